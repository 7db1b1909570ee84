"""
Sale total arithmetic.

Verifies:
- subtotal, tax and total formulas
- discounts larger than the sale produce a negative total
- add/remove always yield totals consistent with a fresh recompute
- line item validation and the sale-level discount policy
"""

import pytest

from core.totals import add_item, check_discount, line_total, recompute, remove_item, validate_line_item


def _item(name, quantity, unit_price):
    return {"medicine_name": name, "quantity": quantity, "unit_price": unit_price}


# =============================================================================
# RECOMPUTE
# =============================================================================


class TestRecompute:

    def test_single_item_on_empty_transaction(self):
        items = add_item([], _item("Paracetamol 500mg", 2, 12.50))
        totals = recompute(items)
        assert totals["subtotal"] == pytest.approx(25.00)
        assert totals["tax"] == pytest.approx(2.00)
        assert totals["discount"] == 0
        assert totals["total"] == pytest.approx(27.00)

    def test_subtotal_is_sum_of_lines(self):
        items = [_item("A", 3, 1.25), _item("B", 1, 40.00), _item("C", 0, 99.00)]
        assert recompute(items)["subtotal"] == pytest.approx(3 * 1.25 + 40.00)

    @pytest.mark.parametrize("subtotal_items,expected_tax", [
        ([_item("A", 1, 10.00)], 0.80),
        ([_item("A", 1, 0.99)], 0.08),
        ([_item("A", 3, 18.75)], 4.50),
        ([], 0.00),
    ])
    def test_tax_is_rounded_to_cents(self, subtotal_items, expected_tax):
        assert recompute(subtotal_items)["tax"] == pytest.approx(expected_tax)

    def test_discount_is_subtracted(self):
        totals = recompute([_item("A", 3, 18.75)], discount=5.00)
        assert totals["total"] == pytest.approx(56.25 + 4.50 - 5.00)

    def test_discount_larger_than_sale_gives_negative_total(self):
        totals = recompute([_item("A", 1, 10.00)], discount=50.00)
        assert totals["total"] == pytest.approx(10.00 + 0.80 - 50.00)
        assert totals["total"] < 0

    def test_custom_tax_rate(self):
        totals = recompute([_item("A", 2, 50.00)], tax_rate=0.085)
        assert totals["tax"] == pytest.approx(8.50)

    def test_missing_values_count_as_zero(self):
        assert line_total({"medicine_name": "A"}) == 0
        assert recompute([{"quantity": None, "unit_price": 5}])["subtotal"] == 0

    def test_input_is_not_modified(self):
        items = [_item("A", 2, 3.00)]
        recompute(items, discount=1)
        assert items == [_item("A", 2, 3.00)]


# =============================================================================
# ADD / REMOVE
# =============================================================================


class TestAddRemove:

    def test_add_returns_new_list_with_line_total(self):
        items = [_item("A", 1, 2.00)]
        new_items = add_item(items, _item("B", 4, 2.50))
        assert len(items) == 1
        assert [i["medicine_name"] for i in new_items] == ["A", "B"]
        assert new_items[-1]["total"] == pytest.approx(10.00)

    def test_remove_recomputes_consistently(self):
        items = []
        for item in (_item("A", 2, 12.50), _item("B", 1, 25.00), _item("C", 3, 18.75)):
            items = add_item(items, item)
        items = remove_item(items, 1)
        totals = recompute(items, discount=2.00)
        expected_subtotal = 2 * 12.50 + 3 * 18.75
        assert [i["medicine_name"] for i in items] == ["A", "C"]
        assert totals["subtotal"] == pytest.approx(expected_subtotal)
        assert totals["tax"] == pytest.approx(round(expected_subtotal * 0.08, 2))
        assert totals["total"] == pytest.approx(expected_subtotal + totals["tax"] - 2.00)

    def test_remove_last_item_gives_zero_totals(self):
        items = remove_item(add_item([], _item("A", 1, 5.00)), 0)
        assert recompute(items) == {"subtotal": 0, "tax": 0, "discount": 0, "total": 0}

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_remove_out_of_range(self, index):
        with pytest.raises(IndexError):
            remove_item([_item("A", 1, 1.0), _item("B", 1, 1.0)], index)


# =============================================================================
# VALIDATION
# =============================================================================


class TestValidation:

    @pytest.mark.parametrize("item", [
        _item("", 1, 1.00),
        _item("   ", 1, 1.00),
        _item("A", 0, 1.00),
        _item("A", 1, 0),
        {"medicine_name": "A", "quantity": 1},
    ])
    def test_incomplete_item_rejected(self, item):
        with pytest.raises(ValueError, match="Please fill in all item details"):
            validate_line_item(item)

    def test_complete_item_accepted(self):
        validate_line_item(_item("A", 1, 0.50))

    def test_discount_within_limit(self):
        totals = recompute([_item("A", 1, 100.00)])
        check_discount(totals, 10.00, limit_percent=10)

    def test_discount_over_limit(self):
        totals = recompute([_item("A", 1, 100.00)])
        with pytest.raises(ValueError, match="limit"):
            check_discount(totals, 10.01, limit_percent=10)

    def test_discount_over_sale_total(self):
        totals = recompute([_item("A", 1, 10.00)])
        with pytest.raises(ValueError, match="exceeds the sale total"):
            check_discount(totals, 11.00)

    def test_negative_discount(self):
        totals = recompute([_item("A", 1, 10.00)])
        with pytest.raises(ValueError, match="negative"):
            check_discount(totals, -1)
