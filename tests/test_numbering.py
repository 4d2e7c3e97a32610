# tests/test_numbering.py

import pytest

from database.repositories.numbering import (
    next_challan_number,
    next_invoice_number,
    next_quotation_number,
    next_sequence_number,
    numeric_part,
)


def test_highest_numeric_part_plus_one():
    assert next_sequence_number(["1", "3", "abc", "5"]) == "6"


@pytest.mark.parametrize(
    "fn, seed",
    [(next_invoice_number, "1"), (next_challan_number, "DC-1"), (next_quotation_number, "QT-1")],
)
def test_seeds_when_nothing_exists(fn, seed):
    assert fn([]) == seed


def test_prefix_is_not_part_of_the_number():
    assert next_challan_number(["DC-1", "DC-9", "DC-10"]) == "DC-11"
    assert next_quotation_number(["QT-7", None, ""]) == "QT-8"


@pytest.mark.parametrize(
    "number, value",
    [("DC-0042", 42), ("abc", 0), ("", 0), (None, 0), ("12", 12)],
)
def test_numeric_part(number, value):
    assert numeric_part(number) == value
