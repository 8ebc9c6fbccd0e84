"""docs.rs client for rustdoc JSON artifacts."""

import re
from urllib.parse import quote

import requests
from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from rustdoc_lookup.config import (
    FETCH_TIMEOUT,
    NOT_READY_ATTEMPTS,
    NOT_READY_BACKOFF,
    NOT_READY_DEADLINE,
    NOT_READY_MAX_WAIT,
    USER_AGENT,
    resolve_registry_url,
)
from rustdoc_lookup.errors import PackageNotFound, RegistryUnavailable

# Statuses meaning "try again later" rather than "this does not exist".
NOT_READY_STATUSES = frozenset({202, 408, 425, 429, 502, 503, 504})

_SAFE_COMPONENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.+-]*$")


class DocsNotReady(Exception):
    """The registry cannot serve the artifact yet. Retried internally."""


def validate_path_component(value: str, component_name: str) -> None:
    """Reject values that could escape a URL path or a cache directory.

    Raises:
        ValueError: Empty value, path separators, ``..``, or characters other
            than alphanumerics, ``-``, ``_``, ``.`` and ``+``.
    """
    if not value:
        msg = f"{component_name} cannot be empty"
        raise ValueError(msg)
    if "/" in value or "\\" in value:
        msg = f"{component_name} contains invalid path separator: {value!r}"
        raise ValueError(msg)
    if ".." in value:
        msg = f"{component_name} contains invalid path component: {value!r}"
        raise ValueError(msg)
    if not _SAFE_COMPONENT_RE.match(value):
        msg = (
            f"{component_name} contains invalid characters: {value!r} "
            "(allowed: alphanumeric, hyphen, underscore, dot, plus)"
        )
        raise ValueError(msg)


class DocsRsRegistry:
    """Fetch compressed rustdoc JSON from docs.rs."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float = FETCH_TIMEOUT,
        attempts: int = NOT_READY_ATTEMPTS,
        backoff: float = NOT_READY_BACKOFF,
        deadline: float = NOT_READY_DEADLINE,
    ) -> None:
        self.base_url = (base_url or resolve_registry_url()).rstrip("/")
        self.timeout = timeout
        self.attempts = attempts
        self.backoff = backoff
        self.deadline = deadline
        self.sess = requests.Session()
        self.sess.headers["User-Agent"] = USER_AGENT

    def url_for(self, package: str, version: str | None) -> str:
        validate_path_component(package, "crate name")
        return f"{self.base_url}/crate/{package}/{quote(version or 'latest', safe='')}/json"

    def fetch(self, package: str, version: str | None) -> bytes:
        """Download the rustdoc JSON artifact for ``package@version``.

        ``version`` may be an exact version, a requirement, or None for latest.

        Raises:
            PackageNotFound: The registry has no such crate/version.
            RegistryUnavailable: Retries exhausted or an unexpected status.
        """
        url = self.url_for(package, version)
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts) | stop_after_delay(self.deadline),
            wait=wait_exponential(multiplier=self.backoff, max=NOT_READY_MAX_WAIT),
            retry=retry_if_exception_type(DocsNotReady),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            return retrying(self._fetch_once, url)
        except DocsNotReady as e:
            msg = f"docs.rs could not serve {package}@{version or 'latest'}: {e}"
            raise RegistryUnavailable(msg) from e

    def _fetch_once(self, url: str) -> bytes:
        logger.debug("Making request: {}", url)
        try:
            r = self.sess.get(url, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise DocsNotReady(str(e)) from e
        except requests.RequestException as e:
            msg = f"Request to {url} failed: {e}"
            raise RegistryUnavailable(msg) from e

        if r.status_code == 200:
            logger.debug("Downloaded {} bytes (compressed)", len(r.content))
            return r.content
        if r.status_code == 404:
            msg = f"No documentation found at {url} (is the crate name and version correct?)"
            raise PackageNotFound(msg)
        if r.status_code in NOT_READY_STATUSES:
            msg = f"status {r.status_code}"
            raise DocsNotReady(msg)
        msg = f"Unexpected status {r.status_code} from {url}"
        raise RegistryUnavailable(msg)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    sleep = state.next_action.sleep if state.next_action else 0
    logger.debug("Documentation not ready ({}), retrying in {:.1f}s", exc, sleep)
