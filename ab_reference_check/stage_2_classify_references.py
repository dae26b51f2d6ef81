"""
Stage 2: Classify References - Azure Board Reference Check

PURPOSE:
    Decide whether a pull request description satisfies the reference policy.
    The description passes if it cites at least one Azure Boards work item
    (`AB#123456`) or, failing that, if the author opted out with the `no-ab`
    keyword. Pure Python, no I/O, no state: the same text always produces the
    same verdict, including the empty string (which is `Missing`).

CALLED BY:
    reference_check_main.py - with the description from Stage 1.

DESIGN DECISIONS:
    - The verdict is a small tagged union (References | Exempted | Missing)
      rather than a string, so the reconciler and the summary renderer can
      branch on type and fail loudly if a new variant is ever added.
    - References win over the exemption marker. "See AB#1, no-ab" is a
      References verdict, and the work items still show up in the outputs.
    - Both patterns are compiled with re.ASCII: `\\d` must not accept other
      scripts' digits and `\\b` must treat only [A-Za-z0-9_] as word chars.
    - The `AB#` prefix is case sensitive and must start a token, so `XAB#12`
      is not a reference. The digit run is NOT bounded on the right:
      `AB#12x` still yields `AB#12`.
"""

import re
from dataclasses import dataclass
from typing import Union

REFERENCE_PATTERN = re.compile(r"\bAB#\d+", re.ASCII)
EXEMPTION_PATTERN = re.compile(r"\bno-ab\b", re.ASCII | re.IGNORECASE)

EXEMPTION_KEYWORD = "no-ab"
REFERENCE_EXAMPLE = "AB#123456"


@dataclass(frozen=True)
class References:
    """The description cites one or more work items (in text order)."""

    numbers: tuple

    @property
    def passed(self) -> bool:
        return True


@dataclass(frozen=True)
class Exempted:
    """No work item cited, but the author added the exemption keyword."""

    @property
    def passed(self) -> bool:
        return True


@dataclass(frozen=True)
class Missing:
    """Neither a work item nor the exemption keyword was found."""

    @property
    def passed(self) -> bool:
        return False


Verdict = Union[References, Exempted, Missing]


def classify(description: str) -> Verdict:
    """
    Classify a pull request description.

    Args:
        description: Raw PR body. None is accepted and treated as "".

    Returns:
        References(numbers) when any `AB#<digits>` is present, otherwise
        Exempted when `no-ab` appears as a whole word (any case), otherwise
        Missing.
    """
    text = description or ""
    numbers = extract_references(text)
    if numbers:
        return References(numbers=tuple(numbers))
    return Exempted() if has_exemption_marker(text) else Missing()


def extract_references(text: str) -> list:
    """All work item references in left-to-right order, duplicates kept."""
    return REFERENCE_PATTERN.findall(text)


def has_exemption_marker(text: str) -> bool:
    return EXEMPTION_PATTERN.search(text) is not None


def referenced_numbers(verdict: Verdict) -> list:
    """The `ab-numbers` output value for a verdict (empty unless References)."""
    if isinstance(verdict, References):
        return list(verdict.numbers)
    return []
