"""Error taxonomy for documentation lookups."""


class DocsLookupError(Exception):
    """Base class for every error surfaced to callers."""


class QuerySpecError(DocsLookupError):
    """The typed crate reference could not be parsed."""


class ConstraintInvalid(DocsLookupError):
    """A version requirement has malformed syntax. Raised before any I/O."""


class AcquisitionError(DocsLookupError):
    """Fetching or building documentation failed.

    Subclasses are absorbed by the cache into a stale fallback when a
    previous entry exists.
    """


class ToolchainMissing(AcquisitionError):
    """The local build toolchain is missing or incompatible."""

    def __init__(self, message: str, *, guidance: str) -> None:
        super().__init__(f"{message}. {guidance}")
        self.guidance = guidance


class BuildFailed(AcquisitionError):
    """A local documentation build ran and exited unsuccessfully."""

    def __init__(self, message: str, *, diagnostics: str = "") -> None:
        full = f"{message}\n{diagnostics}" if diagnostics else message
        super().__init__(full)
        self.diagnostics = diagnostics


class RegistryUnavailable(AcquisitionError):
    """The registry did not deliver documentation within the retry budget."""


class PackageNotFound(AcquisitionError):
    """The registry has no documentation for the requested crate/version."""


class SchemaError(DocsLookupError):
    """Documentation bytes are not valid rustdoc JSON of a supported version."""


class PathNotFound(DocsLookupError):
    """A path segment does not name an item in the documentation graph."""


class ReexportCycle(DocsLookupError):
    """Following re-exports revisited a module or re-export declaration."""
