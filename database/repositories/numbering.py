from __future__ import annotations

import re
from typing import Iterable

from constants import CHALLAN_PREFIX, INVOICE_PREFIX, QUOTATION_PREFIX

_NON_DIGITS = re.compile(r"\D")


def numeric_part(number: str | None) -> int:
    """'DC-0042' -> 42, 'abc' -> 0."""
    digits = _NON_DIGITS.sub("", number or "")
    return int(digits) if digits else 0


def next_sequence_number(numbers: Iterable[str | None], prefix: str = "") -> str:
    """
    Next document number: highest numeric part among `numbers` + 1, prefixed.
    Numbers without digits count as 0, so an empty history yields prefix + '1'.

        ["1", "3", "abc", "5"]  -> "6"
        []                      -> "1"
        ["DC-1", "DC-7"], "DC-" -> "DC-8"
    """
    highest = max((numeric_part(n) for n in numbers), default=0)
    return f"{prefix}{highest + 1}"


def next_invoice_number(numbers: Iterable[str | None]) -> str:
    return next_sequence_number(numbers, INVOICE_PREFIX)


def next_challan_number(numbers: Iterable[str | None]) -> str:
    return next_sequence_number(numbers, CHALLAN_PREFIX)


def next_quotation_number(numbers: Iterable[str | None]) -> str:
    return next_sequence_number(numbers, QUOTATION_PREFIX)
