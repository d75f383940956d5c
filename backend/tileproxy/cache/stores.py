"""Backends for the ephemeral and durable cache tiers.

Both tiers are reached through small protocols so the cache policy in
:mod:`tileproxy.cache.tiers` does not care where bytes live:

- ResponseCacheProtocol (tier1): full responses keyed by request identity.
  InMemoryResponseCache keeps a bounded number of them for the tile
  max-age.
- ObjectStoreProtocol (tier2): tile bodies keyed ``{layer}/{z}/{x}/{y}.{ext}``
  with only their native metadata (size, content type, etag, upload time).
  InMemoryObjectStore serves tests, FileSystemObjectStore is the default
  durable backend and PostgresObjectStore keeps tiles in a bytea table.

Store implementations wrap their native failures in StoreError; callers
treat every store operation as best-effort.

Example:
    Resolve the configured stores:
        >>> from tileproxy.cache import stores
        >>> response_cache = stores.get_response_cache()
        >>> object_store = stores.get_object_store()
        >>> object_store.put("sestoji/15/1/2.png", b"...", content_type="image/png")
"""

from __future__ import annotations

import collections
import contextlib
import datetime
import functools
import hashlib
import json
import pathlib
import tempfile
import threading
import time
from typing import TYPE_CHECKING, Protocol

import psycopg2
import psycopg2.extensions

from tileproxy.cache import models as cache_models
from tileproxy.core import config, errors

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def object_etag(body: bytes) -> str:
    """Return the quoted MD5 entity tag durable stores attach to objects."""
    return f'"{hashlib.md5(body, usedforsecurity=False).hexdigest()}"'


class ResponseCacheProtocol(Protocol):
    """Protocol interface for the ephemeral response tier."""

    def match(self, identity: str) -> cache_models.CachedResponse | None: ...

    def put(self, identity: str, response: cache_models.CachedResponse) -> None: ...


class ObjectStoreProtocol(Protocol):
    """Protocol interface for the durable tile object tier."""

    def get(self, key: str) -> cache_models.StoredObject | None: ...

    def put(self, key: str, body: bytes, *, content_type: str) -> None: ...


class InMemoryResponseCache(ResponseCacheProtocol):
    """Bounded process-local response cache with a fixed time-to-live.

    Entries expire ``ttl_seconds`` after they were put. Entries are kept in
    put order, which is also expiry order since the TTL is shared: every
    ``put`` purges expired entries from the front and then evicts the oldest
    ones until at most ``max_entries`` remain.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._store: collections.OrderedDict[
            str, tuple[float, cache_models.CachedResponse]
        ] = collections.OrderedDict()

    def match(self, identity: str) -> cache_models.CachedResponse | None:
        with self._lock:
            item = self._store.get(identity)
            if item is None:
                return None
            expires_at, response = item
            if self._clock() >= expires_at:
                del self._store[identity]
                return None
            return response

    def put(self, identity: str, response: cache_models.CachedResponse) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._store.pop(identity, None)
            self._store[identity] = (now + self.ttl_seconds, response)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def _purge_expired(self, now: float) -> None:
        while self._store:
            expires_at, _ = next(iter(self._store.values()))
            if now < expires_at:
                break
            self._store.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class InMemoryObjectStore(ObjectStoreProtocol):
    """Simple in-memory object store for tests and local development.

    Data is lost when the process exits.
    """

    def __init__(self) -> None:
        self._store: dict[str, cache_models.StoredObject] = {}

    def get(self, key: str) -> cache_models.StoredObject | None:
        return self._store.get(key)

    def put(self, key: str, body: bytes, *, content_type: str) -> None:
        self._store[key] = cache_models.StoredObject(
            body=body,
            size=len(body),
            content_type=content_type,
            etag=object_etag(body),
            uploaded_at=datetime.datetime.now(datetime.UTC),
        )

    def keys(self) -> list[str]:
        return sorted(self._store)


class FileSystemObjectStore(ObjectStoreProtocol):
    """Durable object store laid out as ``root/{layer}/{z}/{x}/{y}.{ext}``.

    Each object has a ``.meta.json`` sidecar recording its content type. The
    etag and size are always computed from the body that was read, and the
    upload time is the body file's modification time. Files are written to a
    temporary name first and moved into place, so readers never see a
    partial tile; the body is replaced before its sidecar.
    """

    def __init__(self, root: pathlib.Path) -> None:
        self.root = root

    def _path(self, key: str) -> pathlib.Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise errors.StoreError(f"Key escapes store root: {key}")
        return path

    @staticmethod
    def _meta_path(path: pathlib.Path) -> pathlib.Path:
        return path.with_name(path.name + ".meta.json")

    def get(self, key: str) -> cache_models.StoredObject | None:
        path = self._path(key)
        try:
            body = path.read_bytes()
            meta = json.loads(self._meta_path(path).read_text(encoding="utf-8"))
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            raise errors.StoreError(f"Failed to read {key}: {exc}") from exc

        return cache_models.StoredObject(
            body=body,
            size=len(body),
            content_type=meta.get("content_type"),
            etag=object_etag(body),
            uploaded_at=datetime.datetime.fromtimestamp(mtime, datetime.UTC),
        )

    def put(self, key: str, body: bytes, *, content_type: str) -> None:
        path = self._path(key)
        meta = {"content_type": content_type}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write_atomic(path, body)
            self._write_atomic(
                self._meta_path(path),
                json.dumps(meta).encode("utf-8"),
            )
        except OSError as exc:
            raise errors.StoreError(f"Failed to write {key}: {exc}") from exc

    @staticmethod
    def _write_atomic(target: pathlib.Path, data: bytes) -> None:
        with tempfile.NamedTemporaryFile(delete=False, dir=target.parent) as tmp:
            tmp_path = pathlib.Path(tmp.name)
            try:
                tmp.write(data)
                tmp.flush()
            except OSError:
                tmp.close()
                tmp_path.unlink(missing_ok=True)
                raise

        try:
            tmp_path.replace(target)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise


class PostgresObjectStore(ObjectStoreProtocol):
    """PostgreSQL-backed durable object store.

    Tiles are kept in a ``tile_objects`` table with the body as bytea.
    The table is created on first use.
    """

    CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS tile_objects (
      key TEXT PRIMARY KEY,
      body BYTEA NOT NULL,
      size INTEGER NOT NULL,
      content_type TEXT,
      etag TEXT NOT NULL,
      uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """

    def __init__(self, settings: config.Settings) -> None:
        """Initialize the store without connecting.

        Args:
            settings: Application settings containing database connection URL.
        """
        self.settings = settings
        self._schema_ready = False

    @contextlib.contextmanager
    def _cursor(self) -> Iterator[psycopg2.extensions.cursor]:
        try:
            conn = psycopg2.connect(self.settings.database_url)
        except psycopg2.Error as exc:
            raise errors.StoreError(f"Database unavailable: {exc}") from exc
        try:
            with conn, conn.cursor() as cur:
                if not self._schema_ready:
                    cur.execute(self.CREATE_TABLE_SQL)
                    self._schema_ready = True
                yield cur
        except psycopg2.Error as exc:
            raise errors.StoreError(f"Database error: {exc}") from exc
        finally:
            conn.close()

    def get(self, key: str) -> cache_models.StoredObject | None:
        with self._cursor() as cur:
            cur.execute(
                "SELECT body, size, content_type, etag, uploaded_at "
                "FROM tile_objects WHERE key = %s",
                (key,),
            )
            row = cur.fetchone()

        if row is None:
            return None
        body, size, content_type, etag, uploaded_at = row
        return cache_models.StoredObject(
            body=bytes(body),
            size=int(size),
            content_type=content_type,
            etag=etag,
            uploaded_at=uploaded_at,
        )

    def put(self, key: str, body: bytes, *, content_type: str) -> None:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO tile_objects (key, body, size, content_type, etag)
                VALUES (%(key)s, %(body)s, %(size)s, %(content_type)s, %(etag)s)
                ON CONFLICT (key) DO UPDATE SET
                    body = EXCLUDED.body,
                    size = EXCLUDED.size,
                    content_type = EXCLUDED.content_type,
                    etag = EXCLUDED.etag,
                    uploaded_at = now();
                """,
                {
                    "key": key,
                    "body": psycopg2.Binary(body),
                    "size": len(body),
                    "content_type": content_type,
                    "etag": object_etag(body),
                },
            )


@functools.lru_cache
def get_response_cache() -> ResponseCacheProtocol:
    """Return the process-wide ephemeral response cache."""
    settings = config.get_settings()
    return InMemoryResponseCache(
        ttl_seconds=settings.tile_max_age_seconds,
        max_entries=settings.response_cache_max_entries,
    )


@functools.lru_cache
def get_object_store() -> ObjectStoreProtocol:
    """Return the process-wide durable object store.

    The backend is selected by ``settings.object_store_backend``.
    """
    settings = config.get_settings()
    if settings.object_store_backend == "postgres":
        return PostgresObjectStore(settings)
    if settings.object_store_backend == "memory":
        return InMemoryObjectStore()
    return FileSystemObjectStore(settings.tile_store_dir)
