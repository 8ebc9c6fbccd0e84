"""Dispatch a version resolution to the registry or the local builder."""

from loguru import logger

from rustdoc_lookup.models.query import LocalTarget, RemoteTarget, VersionResolution
from rustdoc_lookup.protocols import BuilderProtocol, RegistryProtocol


class SourceAcquirer:
    """Return raw documentation bytes for a resolved target.

    Never touches the cache; DocCache calls ``acquire`` on a miss.
    """

    def __init__(self, registry: RegistryProtocol, builder: BuilderProtocol) -> None:
        self.registry = registry
        self.builder = builder

    def acquire(self, resolution: VersionResolution) -> bytes:
        target = resolution.target
        if isinstance(target, LocalTarget):
            return self.builder.build(target)
        if isinstance(target, RemoteTarget):
            logger.debug("Fetching {}@{} from registry", target.package, target.version or "latest")
            return self.registry.fetch(target.package, target.version)
        msg = f"Unknown target type: {type(target).__name__}"
        raise TypeError(msg)
