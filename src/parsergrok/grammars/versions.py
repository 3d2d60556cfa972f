"""
Semantic version ordering for cached grammar versions.

Uses packaging.version for robust comparison. Handles versions like
"1.2.3", "v1.2.3", "1.2" and "1.2.3-beta". Strings that are not versions
at all sort below every valid version, in plain string order.
"""

from typing import Iterable, List, Tuple

from packaging import version


def version_key(value: str) -> Tuple[int, object, str]:
    """Sort key placing valid versions above unparseable ones."""
    text = value.strip()
    if text[:1] in ('v', 'V'):
        text = text[1:]
    try:
        return (1, version.parse(text), value)
    except version.InvalidVersion:
        return (0, value, value)


def sort_versions(versions: Iterable[str]) -> List[str]:
    """Return versions ordered newest-first."""
    return sorted(versions, key=version_key, reverse=True)

