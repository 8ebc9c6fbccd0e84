"""Syntax validation for Cargo-style version requirements."""

import re

from rustdoc_lookup.errors import ConstraintInvalid

_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_WILDCARD = r"(?:\*|x|X)"
_NUM = r"(?:0|[1-9][0-9]*)"

_COMPARATOR_RE = re.compile(
    rf"""
    ^(?:=|>=|<=|>|<|~|\^)?\s*
    (?:
        {_WILDCARD}
      | {_NUM}
        (?:\.(?:{_NUM}|{_WILDCARD})
            (?:\.(?:{_NUM}|{_WILDCARD}))?
        )?
        (?:-{_IDENT})?
        (?:\+{_IDENT})?
    )$
    """,
    re.VERBOSE,
)


def validate_constraint(text: str) -> str:
    """Check a version requirement and return it stripped.

    Accepts ``latest``, exact versions (``1.2.3``) and comma-separated
    comparators (``>=1.0, <2``, ``^0.4``, ``1.*``).

    Raises:
        ConstraintInvalid: The requirement is empty or malformed.
    """
    stripped = text.strip()
    if stripped == "latest":
        return stripped
    if not stripped:
        msg = "Version requirement cannot be empty"
        raise ConstraintInvalid(msg)

    for part in stripped.split(","):
        comparator = part.strip()
        if not comparator or not _COMPARATOR_RE.match(comparator):
            msg = (
                f"Invalid version requirement {text!r}: {comparator!r} is not a valid "
                "comparator (expected e.g. '1.2.3', '^1.0', '>=1, <2', '1.*' or 'latest')"
            )
            raise ConstraintInvalid(msg)
    return stripped
