"""Tile cache tiers and the policy layer combining them.

Submodules:
    - models: value objects exchanged between the route and the tiers.
    - stores: ephemeral response cache and durable object store backends.
    - tiers: TierCache lookup/store policy.
"""
