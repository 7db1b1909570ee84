"""Status workflows."""

import pytest

from core import workflow
from core.workflow import InvalidTransition


class TestTransitions:

    @pytest.mark.parametrize("kind,current,new", [
        (workflow.PRESCRIPTION, "Pending", "Filled"),
        (workflow.PRESCRIPTION, "Pending", "Partially Filled"),
        (workflow.PRESCRIPTION, "Partially Filled", "Filled"),
        (workflow.PURCHASE, "Pending", "Delivered"),
        (workflow.PURCHASE, "Partial", "Cancelled"),
        (workflow.SALE, "Completed", "Refunded"),
        (workflow.SALE, "Pending", "Completed"),
        (workflow.CUSTOMER, "Active", "Inactive"),
        (workflow.SUPPLIER, "Inactive", "Active"),
    ])
    def test_allowed(self, kind, current, new):
        assert workflow.transition(kind, current, new) == new

    @pytest.mark.parametrize("kind,current,new", [
        (workflow.PRESCRIPTION, "Filled", "Pending"),
        (workflow.PRESCRIPTION, "Cancelled", "Filled"),
        (workflow.PURCHASE, "Delivered", "Pending"),
        (workflow.SALE, "Refunded", "Completed"),
        (workflow.SALE, "Completed", "Pending"),
    ])
    def test_rejected(self, kind, current, new):
        with pytest.raises(InvalidTransition):
            workflow.transition(kind, current, new)

    def test_invalid_transition_is_value_error(self):
        with pytest.raises(ValueError):
            workflow.transition(workflow.SALE, "Refunded", "Completed")

    def test_unknown_status(self):
        with pytest.raises(InvalidTransition, match="Unknown sale status"):
            workflow.allowed_transitions(workflow.SALE, "Shipped")

    def test_unknown_kind(self):
        with pytest.raises(InvalidTransition):
            workflow.statuses("invoice")


class TestTerminalStates:

    @pytest.mark.parametrize("kind,status", [
        (workflow.PRESCRIPTION, "Filled"),
        (workflow.PRESCRIPTION, "Cancelled"),
        (workflow.PURCHASE, "Delivered"),
        (workflow.PURCHASE, "Cancelled"),
        (workflow.SALE, "Refunded"),
    ])
    def test_terminal(self, kind, status):
        assert workflow.is_terminal(kind, status)

    def test_customer_status_toggles_forever(self):
        assert not workflow.is_terminal(workflow.CUSTOMER, "Active")
        assert not workflow.is_terminal(workflow.CUSTOMER, "Inactive")

    def test_statuses_listed_in_order(self):
        assert workflow.statuses(workflow.SALE) == ["Pending", "Completed", "Refunded"]
