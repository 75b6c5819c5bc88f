"""Regular-expression narrowing of raw version strings."""

from __future__ import annotations

import re

from versioncheck.errors import UsageError

_FLAGS = re.MULTILINE | re.DOTALL


def apply_regexp(raw: str, regexp: str | None) -> str | None:
    """Narrow *raw* with *regexp*.

    Returns the first capture group when the pattern has one, else the whole
    match; None when the pattern does not match. Without a pattern the input
    is returned unchanged.
    """
    if not regexp:
        return raw
    match = re.search(regexp, raw, _FLAGS)
    if match is None:
        return None
    if match.re.groups:
        return match.group(1)
    return match.group(0)


def require_regexp(raw: str, regexp: str | None) -> str:
    """Like apply_regexp but a miss is an error."""
    result = apply_regexp(raw, regexp)
    if result is None:
        raise UsageError(f"No match for {regexp} in {raw}")
    return result
