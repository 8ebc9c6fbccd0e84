"""Configuration constants for rustdoc-lookup."""

import os
from pathlib import Path

# Cache directory. The environment variable wins over the XDG default.
CACHE_DIR_ENV = "RUSTDOC_LOOKUP_CACHE_DIR"
DEFAULT_CACHE_DIR: Path = (
    Path(os.environ.get("XDG_CACHE_HOME", "~/.cache")).expanduser() / "rustdoc-lookup"
)

# Registry serving zstd-compressed rustdoc JSON.
REGISTRY_URL_ENV = "RUSTDOC_LOOKUP_REGISTRY_URL"
DEFAULT_REGISTRY_URL = "https://docs.rs"
USER_AGENT = "rustdoc-lookup (+https://github.com/rustdoc-lookup/rustdoc-lookup)"

# Seconds per HTTP request.
FETCH_TIMEOUT: float = 30.0

# "Not yet available" responses are retried with exponential backoff.
NOT_READY_ATTEMPTS = 4
NOT_READY_BACKOFF: float = 2.0
NOT_READY_MAX_WAIT: float = 30.0
NOT_READY_DEADLINE: float = 120.0

# Entries for unpinned ("latest") versions become invalid after this many seconds.
LATEST_MAX_AGE = 24 * 3600

# Temporary files older than this are considered abandoned by clear().
STALE_TEMP_AGE = 3600

# rustdoc JSON format versions this parser understands.
MIN_FORMAT_VERSION = 30
MAX_FORMAT_VERSION = 99

# Toolchain used for local builds. rustdoc JSON output is nightly-only.
CARGO_BIN = "cargo"
RUSTDOC_TOOLCHAIN = "+nightly"


def resolve_cache_dir(override: str | Path | None = None) -> Path:
    """Return the cache directory: explicit override, then env var, then default."""
    if override:
        return Path(override).expanduser()
    env_dir = os.environ.get(CACHE_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return DEFAULT_CACHE_DIR


def resolve_registry_url() -> str:
    """Return the registry base URL without a trailing slash."""
    return os.environ.get(REGISTRY_URL_ENV, DEFAULT_REGISTRY_URL).rstrip("/")
