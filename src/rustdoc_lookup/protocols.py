"""Protocols for dependency injection in the lookup engine."""

from typing import Protocol, runtime_checkable

from rustdoc_lookup.models.query import LocalTarget, VersionResolution


@runtime_checkable
class RegistryProtocol(Protocol):
    """Protocol for remote documentation registries."""

    def fetch(self, package: str, version: str | None) -> bytes:
        """Return the documentation artifact; None as version means latest."""
        ...


@runtime_checkable
class BuilderProtocol(Protocol):
    """Protocol for local documentation builders."""

    def fingerprint(self, target: LocalTarget) -> str:
        """Content fingerprint of the target's source tree."""
        ...

    def build(self, target: LocalTarget) -> bytes:
        """Build (or reuse) the documentation artifact for the target."""
        ...


@runtime_checkable
class AcquirerProtocol(Protocol):
    """Protocol for anything that turns a resolution into documentation bytes."""

    def acquire(self, resolution: VersionResolution) -> bytes:
        """Fetch or build the documentation bytes."""
        ...

