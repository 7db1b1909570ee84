"""Stock level and expiry classification."""

from datetime import date

import pytest

from core.constants import EXPIRY_EXPIRED, EXPIRY_OK, EXPIRY_SOON, EXPIRY_UNKNOWN, STOCK_IN, STOCK_LOW, STOCK_MEDIUM
from core.stock import classify, expiry_status


@pytest.mark.parametrize("quantity,minimum,expected", [
    (5, 20, STOCK_LOW),
    (20, 20, STOCK_LOW),
    (21, 20, STOCK_MEDIUM),
    (40, 20, STOCK_MEDIUM),
    (41, 20, STOCK_IN),
    (0, 0, STOCK_LOW),
    (-3, 0, STOCK_LOW),
    (1, 0, STOCK_IN),
    (150, 20, STOCK_IN),
])
def test_classify(quantity, minimum, expected):
    assert classify(quantity, minimum) == expected


def test_classify_does_not_need_a_record():
    record = {"quantity": 5, "minimum_stock": 20}
    classify(record["quantity"], record["minimum_stock"])
    assert record == {"quantity": 5, "minimum_stock": 20}


TODAY = date(2024, 1, 16)


@pytest.mark.parametrize("expiry,expected", [
    ("2024-01-15", EXPIRY_EXPIRED),
    ("2024-01-16", EXPIRY_SOON),
    ("2024-02-15", EXPIRY_SOON),
    ("2024-02-16", EXPIRY_OK),
    (date(2025, 1, 1), EXPIRY_OK),
    (None, EXPIRY_UNKNOWN),
    ("", EXPIRY_UNKNOWN),
    ("not a date", EXPIRY_UNKNOWN),
])
def test_expiry_status(expiry, expected):
    assert expiry_status(expiry, TODAY, 30) == expected
