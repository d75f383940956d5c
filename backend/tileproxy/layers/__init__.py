"""Layer configuration: record type, built-in catalog and registry."""
