"""Version matcher - evaluates plugin version constraints.

Constraints may be written npm-style (``^1.2.0``, ``~1.2.0``, ``1.x``, ``*``,
``>=1.0 <2``, ``1.0.0 - 2.0.0``, alternatives joined with ``||``) or as
PEP 440 specifiers (``>=1.0,<2``, ``~=1.2``). Both are evaluated with
``packaging``.
"""

import re
from typing import Iterable, List, Optional, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

_ANY = ("", "*", "x", "X", "latest")
_PARTIAL = re.compile(r"^v?(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?([-+.]?[0-9A-Za-z.\-+]*)?$")
_COMPARATOR = re.compile(r"^(>=|<=|>|<|=)\s*v?(.+)$")
_PEP440_MARKERS = (",", "~=", "==", "!=", "===")


def _parse_partial(text: str) -> Tuple[Optional[int], Optional[int], Optional[int], str]:
    match = _PARTIAL.match(text)
    if not match:
        raise ValueError(f"Invalid version constraint: {text!r}")

    parts = []
    wildcard = False
    for group in match.groups()[:3]:
        # everything after the first wildcard is a wildcard too
        if group is None or group in ("x", "X", "*") or wildcard:
            wildcard = True
            parts.append(None)
        else:
            parts.append(int(group))
    suffix = match.group(4) or ""
    return parts[0], parts[1], parts[2], suffix


def _caret(text: str) -> List[str]:
    major, minor, patch, suffix = _parse_partial(text)
    if major is None:
        return []
    lower = f">={major}.{minor or 0}.{patch or 0}{suffix}"
    if major > 0 or minor is None:
        return [lower, f"<{major + 1}.0.0"]
    if minor > 0 or patch is None:
        return [lower, f"<0.{minor + 1}.0"]
    return [lower, f"<0.0.{patch + 1}"]


def _tilde(text: str) -> List[str]:
    major, minor, patch, suffix = _parse_partial(text)
    if major is None:
        return []
    lower = f">={major}.{minor or 0}.{patch or 0}{suffix}"
    if minor is None:
        return [lower, f"<{major + 1}.0.0"]
    return [lower, f"<{major}.{minor + 1}.0"]


def _bare(text: str) -> List[str]:
    major, minor, patch, suffix = _parse_partial(text)
    if major is None:
        return []
    if minor is None:
        return [f">={major}.0.0", f"<{major + 1}.0.0"]
    if patch is None:
        return [f">={major}.{minor}.0", f"<{major}.{minor + 1}.0"]
    return [f"=={major}.{minor}.{patch}{suffix}"]


def _translate_range(text: str) -> SpecifierSet:
    """Translate one npm-style range (no ``||``) into a SpecifierSet."""
    text = text.strip()
    if text in _ANY:
        return SpecifierSet("")

    hyphen = re.match(r"^(\S+)\s+-\s+(\S+)$", text)
    if hyphen:
        return SpecifierSet(f">={hyphen.group(1).lstrip('v')},<={hyphen.group(2).lstrip('v')}")

    specifiers: List[str] = []
    for token in re.sub(r"(>=|<=|>|<|=|\^|~)\s+", r"\1", text).split():
        if token in _ANY:
            continue
        if token.startswith("^"):
            specifiers.extend(_caret(token[1:]))
        elif token.startswith("~"):
            specifiers.extend(_tilde(token[1:]))
        else:
            comparator = _COMPARATOR.match(token)
            if comparator:
                op, version = comparator.groups()
                specifiers.append(f"{'==' if op == '=' else op}{version}")
            else:
                specifiers.extend(_bare(token))
    return SpecifierSet(",".join(specifiers))


def to_specifiers(constraint: Optional[str]) -> List[SpecifierSet]:
    """Parse a constraint into alternative SpecifierSets (any may match).

    Raises:
        ValueError: If the constraint cannot be parsed
    """
    constraint = (constraint or "").strip()
    if not constraint:
        return [SpecifierSet("")]

    try:
        if any(marker in constraint for marker in _PEP440_MARKERS) and "||" not in constraint:
            return [SpecifierSet(constraint)]
        return [_translate_range(part) for part in constraint.split("||")]
    except InvalidSpecifier as e:
        raise ValueError(f"Invalid version constraint {constraint!r}: {e}") from e


def satisfies(version: str, constraint: Optional[str]) -> bool:
    """Check whether a version satisfies a constraint."""
    try:
        parsed = Version(version)
    except InvalidVersion:
        return False
    return any(spec.contains(parsed) for spec in to_specifiers(constraint))


def max_satisfying(versions: Iterable[str], constraint: Optional[str]) -> Optional[str]:
    """Return the highest version satisfying the constraint, or None."""
    specs = to_specifiers(constraint)
    best = None
    best_version = None

    for candidate in versions:
        try:
            parsed = Version(candidate)
        except InvalidVersion:
            continue
        if not any(spec.contains(parsed) for spec in specs):
            continue
        if best_version is None or parsed > best_version:
            best, best_version = candidate, parsed
    return best
