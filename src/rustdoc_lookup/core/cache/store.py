"""On-disk cache of raw documentation bytes with atomic publish.

Each entry is a single file: one line of JSON metadata, a newline, then the
raw bytes. Entries are written to a uniquely named temporary file in the
same directory and published with ``os.replace``, so readers see either the
previous entry or the new one, never a mix. Concurrent writers for the same
key are allowed; the last publish wins.
"""

import hashlib
import json
import os
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

from loguru import logger

from rustdoc_lookup.config import LATEST_MAX_AGE, STALE_TEMP_AGE
from rustdoc_lookup.core.acquire.registry import validate_path_component
from rustdoc_lookup.errors import AcquisitionError
from rustdoc_lookup.models.query import LocalTarget, VersionResolution

ENTRY_SUFFIX = ".entry"
TEMP_PREFIX = ".tmp-"
LATEST = "latest"


@dataclass(frozen=True)
class CacheKey:
    """Identifies one cache entry.

    Remote keys are ``(package, version or "latest")``. Local keys are
    ``(package-<path hash>, source fingerprint)``.
    """

    kind: str
    name: str
    discriminator: str

    @property
    def is_latest(self) -> bool:
        return self.kind == "remote" and self.discriminator == LATEST

    def __str__(self) -> str:
        sep = "@" if self.kind == "remote" else "#"
        return f"{self.name}{sep}{self.discriminator}"


def cache_key_for(resolution: VersionResolution, fingerprint: str | None = None) -> CacheKey:
    """Build the cache key for a resolution.

    Local targets need the source fingerprint so that edits produce a new key.
    """
    target = resolution.target
    if isinstance(target, LocalTarget):
        if fingerprint is None:
            msg = "Local targets need a source fingerprint"
            raise ValueError(msg)
        path_hash = hashlib.sha256(str(target.path.resolve()).encode("utf-8")).hexdigest()[:12]
        return CacheKey("local", f"{target.package}-{path_hash}", fingerprint)
    return CacheKey("remote", target.package, target.version or LATEST)


@dataclass(frozen=True)
class CacheEntry:
    """A published entry as read back from disk."""

    key: CacheKey
    data: bytes
    acquired_at: float
    valid: bool


@dataclass(frozen=True)
class CachedDocs:
    """Result of ``DocCache.get_or_acquire``.

    ``failure`` carries the acquisition error message when the bytes are a
    stale fallback.
    """

    data: bytes
    is_stale_fallback: bool
    acquired_at: float
    failure: str | None = None


class DocCache:
    """Read-through, write-after cache mediating every acquisition."""

    def __init__(
        self,
        cache_dir: Path,
        *,
        latest_max_age: float = LATEST_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = cache_dir
        self.latest_max_age = latest_max_age
        self.clock = clock

    def entry_path(self, key: CacheKey) -> Path:
        validate_path_component(key.kind, "cache kind")
        validate_path_component(key.name, "cache name")
        if not key.discriminator:
            msg = "cache discriminator cannot be empty"
            raise ValueError(msg)
        fname = quote(key.discriminator, safe="") + ENTRY_SUFFIX
        return self.cache_dir / key.kind / key.name / fname

    def get_or_acquire(
        self,
        key: CacheKey,
        acquire_fn: Callable[[], bytes],
        *,
        bypass: bool = False,
    ) -> CachedDocs:
        """Return cached bytes for ``key``, acquiring and publishing on a miss.

        With ``bypass`` the read is skipped, but a previous entry may still be
        served if acquisition fails.

        Raises:
            AcquisitionError: Acquisition failed and no previous entry exists.
        """
        if not bypass:
            entry = self.read(key)
            if entry is not None and entry.valid:
                logger.debug("Cache hit for {}", key)
                return CachedDocs(data=entry.data, is_stale_fallback=False, acquired_at=entry.acquired_at)
            logger.debug("Cache miss for {}", key)

        try:
            data = acquire_fn()
        except AcquisitionError as e:
            # Re-read: a concurrent writer may have published since our check.
            previous = self.read(key)
            if previous is None:
                raise
            logger.warning("Acquisition of {} failed, serving cached copy: {}", key, e)
            return CachedDocs(
                data=previous.data,
                is_stale_fallback=True,
                acquired_at=previous.acquired_at,
                failure=str(e),
            )

        acquired_at = self.clock()
        try:
            self.publish(key, data, acquired_at)
        except OSError as e:
            logger.warning("Could not write cache entry for {}: {}", key, e)
        return CachedDocs(data=data, is_stale_fallback=False, acquired_at=acquired_at)

    def read(self, key: CacheKey) -> CacheEntry | None:
        """Read an entry. Missing, truncated or corrupt entries read as None."""
        path = self.entry_path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        header, sep, data = raw.partition(b"\n")
        if not sep:
            logger.warning("Ignoring truncated cache entry {}", path)
            return None
        try:
            meta = json.loads(header)
            acquired_at = float(meta["acquired_at"])
            expected = meta["sha256"]
            size = int(meta["size"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring cache entry {} with bad metadata: {}", path, e)
            return None
        if len(data) != size or hashlib.sha256(data).hexdigest() != expected:
            logger.warning("Ignoring corrupt cache entry {}", path)
            return None

        valid = True
        if key.is_latest and self.clock() - acquired_at > self.latest_max_age:
            valid = False
        return CacheEntry(key=key, data=data, acquired_at=acquired_at, valid=valid)

    def publish(self, key: CacheKey, data: bytes, acquired_at: float) -> Path:
        """Atomically write an entry, replacing any previous one."""
        path = self.entry_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        header = {
            "key": [key.kind, key.name, key.discriminator],
            "acquired_at": acquired_at,
            "sha256": hashlib.sha256(data).hexdigest(),
            "size": len(data),
        }
        fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(json.dumps(header).encode("utf-8"))
                f.write(b"\n")
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Published cache entry {} ({} bytes)", path, len(data))
        return path

    def clear(self) -> int:
        """Remove every published entry and return how many were removed.

        Temporary files of in-flight publishes are left alone unless they are
        older than STALE_TEMP_AGE.
        """
        if not self.cache_dir.is_dir():
            return 0

        removed = 0
        for path in self.cache_dir.rglob(f"*{ENTRY_SUFFIX}"):
            if path.name.startswith(TEMP_PREFIX):
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            removed += 1

        cutoff = time.time() - STALE_TEMP_AGE
        for path in self.cache_dir.rglob(f"{TEMP_PREFIX}*"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    logger.debug("Removed abandoned temporary file {}", path)
            except FileNotFoundError:
                continue

        for dirpath, _dirnames, _filenames in os.walk(self.cache_dir, topdown=False):
            if Path(dirpath) == self.cache_dir:
                continue
            try:
                os.rmdir(dirpath)
            except OSError:
                # Not empty: a publish is in flight or a fresh temp file remains.
                continue

        logger.info("Removed {} cache entries from {}", removed, self.cache_dir)
        return removed
