"""
Composer-compatible version helpers.

Stability parsing follows composer/semver's ``VersionParser::parseStability``
and ordering follows PHP's ``version_compare``, which is what composer
clients expect version lists to be sorted by.
"""

from __future__ import annotations

import re
from typing import List

STABILITY_DEV = "dev"
STABILITY_ALPHA = "alpha"
STABILITY_BETA = "beta"
STABILITY_RC = "RC"
STABILITY_STABLE = "stable"

_MODIFIER_RE = re.compile(
    r"[._-]?(?:(stable|beta|b|rc|alpha|a|patch|pl|p)((?:[.-]?\d+)*)?)?([.-]?dev)?(?:\+.*)?$",
    re.IGNORECASE,
)

# Order of the non-numeric version parts; "#" stands for any number.
_SPECIAL_FORMS = (
    ("dev", 0),
    ("alpha", 1),
    ("a", 1),
    ("beta", 2),
    ("b", 2),
    ("RC", 3),
    ("rc", 3),
    ("#", 4),
    ("pl", 5),
    ("p", 5),
)
_NUMBER_FORM = "#N#"


def _isdigit(ch: str) -> bool:
    return len(ch) == 1 and "0" <= ch <= "9"


def parse_stability(version: str) -> str:
    """
    Return the stability of a version string: dev, alpha, beta, RC or stable.
    """
    version = re.sub(r"#.+$", "", version)

    if version.startswith("dev-") or version.endswith("-dev"):
        return STABILITY_DEV

    match = _MODIFIER_RE.search(version.lower())
    if match is None:
        return STABILITY_STABLE

    if match.group(3):
        return STABILITY_DEV

    modifier = match.group(1)
    if modifier in ("beta", "b"):
        return STABILITY_BETA
    if modifier in ("alpha", "a"):
        return STABILITY_ALPHA
    if modifier == "rc":
        return STABILITY_RC

    return STABILITY_STABLE


def is_dev(version: str) -> bool:
    return parse_stability(version) == STABILITY_DEV


def _canonicalize(version: str) -> str:
    # "-", "_" and "+" become ".", and a "." is inserted wherever a run of
    # digits meets a run of non-digits.
    out = [version[0]]
    prev = version[0]
    for ch in version[1:]:
        last = out[-1]
        if ch in "-_+":
            if last != ".":
                out.append(".")
        elif (prev != "." and not _isdigit(prev) and _isdigit(ch)) or (
            _isdigit(prev) and ch != "." and not _isdigit(ch)
        ):
            if last != ".":
                out.append(".")
            out.append(ch)
        elif not ch.isalnum():
            if last != ".":
                out.append(".")
        else:
            out.append(ch)
        prev = ch
    return "".join(out)


def _special_order(form: str) -> int:
    for name, order in _SPECIAL_FORMS:
        if form.startswith(name):
            return order
    return -6


def _compare_special(form1: str, form2: str) -> int:
    found1 = _special_order(form1)
    found2 = _special_order(form2)
    return (found1 > found2) - (found1 < found2)


def _compare_part(part1: str, part2: str) -> int:
    digit1 = _isdigit(part1[:1])
    digit2 = _isdigit(part2[:1])
    if digit1 and digit2:
        num1, num2 = int(part1), int(part2)
        return (num1 > num2) - (num1 < num2)
    if not digit1 and not digit2:
        return _compare_special(part1, part2)
    if digit1:
        return _compare_special(_NUMBER_FORM, part2)
    return _compare_special(part1, _NUMBER_FORM)


def _split(version: str) -> List[str]:
    return [part for part in _canonicalize(version).split(".") if part]


def version_compare(version1: str, version2: str) -> int:
    """
    Compare two version strings the way PHP's ``version_compare`` does.

    Returns -1, 0 or 1.
    """
    if not version1 or not version2:
        if not version1 and not version2:
            return 0
        return 1 if version1 else -1

    parts1 = _split(version1)
    parts2 = _split(version2)

    for part1, part2 in zip(parts1, parts2):
        compare = _compare_part(part1, part2)
        if compare != 0:
            return compare

    if len(parts1) > len(parts2):
        extra = parts1[len(parts2)]
        return 1 if _isdigit(extra[:1]) else _compare_special(extra, _NUMBER_FORM)
    if len(parts2) > len(parts1):
        extra = parts2[len(parts1)]
        return -1 if _isdigit(extra[:1]) else _compare_special(_NUMBER_FORM, extra)
    return 0
