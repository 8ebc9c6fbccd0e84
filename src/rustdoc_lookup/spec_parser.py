"""Parse typed crate references such as ``tokio@1.0::task::spawn``."""

import re

from rustdoc_lookup.errors import QuerySpecError
from rustdoc_lookup.models.query import QuerySpec, normalize_crate_name

_CRATE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def parse_query_spec(text: str, filter_term: str | None = None) -> QuerySpec:
    """Parse ``crate[@version][::path::segments]`` into a QuerySpec.

    Only the first ``@`` separates the name; everything after it up to the
    first ``::`` is the version requirement. A trailing ``::`` is ignored.

    Args:
        text: The crate reference as typed.
        filter_term: Optional substring filter; blank means no filter.

    Raises:
        QuerySpecError: The crate name is empty or not a valid crate name, or
            the version after ``@`` is empty.
    """
    name, sep, remainder = text.partition("@")
    version: str | None = None
    if sep:
        version, _, path_str = remainder.partition("::")
        if not version.strip():
            msg = "Version cannot be empty after '@'"
            raise QuerySpecError(msg)
    else:
        name, _, path_str = text.partition("::")

    name = name.strip()
    if not name:
        msg = "Crate name cannot be empty"
        raise QuerySpecError(msg)
    if not _CRATE_NAME_RE.match(name):
        msg = f"Invalid crate name {name!r} (allowed: letters, digits, '-' and '_')"
        raise QuerySpecError(msg)

    segments = tuple(seg for seg in path_str.strip().split("::") if seg)

    if filter_term is not None and not filter_term.strip():
        filter_term = None

    return QuerySpec(
        package=normalize_crate_name(name),
        version_constraint=version.strip() if version else None,
        path=segments,
        filter=filter_term,
    )
