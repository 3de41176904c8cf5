"""Refund engine: slab selection, fee breakdown and input checks."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from trustroute.refunds.calculator import (
    calculate_refund, select_slab, hours_until, InvalidRefundInput, NO_REFUND_SLAB
)
from trustroute.refunds.schemas import RefundRules
from tests.helpers import STANDARD_RULES

NOW = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)

def departing_in(hours: float) -> datetime:
    return NOW + timedelta(hours=hours)

@pytest.fixture
def rules():
    return RefundRules.model_validate(STANDARD_RULES)

class TestConcreteScenarios:

    def test_thirty_hours_out_uses_24_hour_slab(self, rules):
        result = calculate_refund(1000, departing_in(30), NOW, rules)

        assert result.applied_slab.hours_before == 24
        assert result.breakdown.applied_slab == "More than 24 hours before departure"
        assert result.refund_amount == Decimal("950")
        assert result.deduction_total == Decimal("50")
        assert result.breakdown.deductions.convenience == Decimal("50")
        assert result.breakdown.deductions.cancellation == Decimal("0")

    def test_ten_hours_out_uses_3_hour_slab(self, rules):
        result = calculate_refund(1000, departing_in(10), NOW, rules)

        assert result.applied_slab.hours_before == 3
        assert result.applied_slab.refund_percentage == Decimal("50")
        assert result.refund_amount == Decimal("500")
        assert result.deduction_total == Decimal("500")
        assert result.breakdown.deductions.convenience == Decimal("50")
        assert result.breakdown.deductions.cancellation == Decimal("450")

    def test_one_hour_out_uses_zero_slab(self, rules):
        result = calculate_refund(1000, departing_in(1), NOW, rules)

        assert result.applied_slab.hours_before == 0
        assert result.refund_amount == Decimal("0")
        assert result.deduction_total == Decimal("1000")
        assert result.breakdown.deductions.convenience == Decimal("50")
        assert result.breakdown.deductions.cancellation == Decimal("950")

    def test_departed_falls_back_to_zero_refund(self, rules):
        result = calculate_refund(500, departing_in(-5), NOW, rules)

        assert result.refund_amount == Decimal("0")
        assert result.deduction_total == Decimal("500")
        assert result.applied_slab.refund_percentage == Decimal("0")
        assert result.breakdown.time_diff_hrs == -5.0

class TestSlabSelection:

    @pytest.mark.parametrize("hours,expected", [
        (24, 24),
        (12, 12),
        (3, 3),
        (0, 0),
        (23.99, 12),
        (2.99, 0),
    ])
    def test_threshold_is_inclusive(self, rules, hours, expected):
        assert select_slab(rules, hours).hours_before == expected

    def test_slab_order_in_document_does_not_matter(self):
        shuffled = RefundRules.model_validate({
            "slabs": list(reversed(STANDARD_RULES["slabs"])),
            "fees": STANDARD_RULES["fees"],
        })
        assert select_slab(shuffled, 13).refund_percentage == Decimal("75")

    def test_fallback_prefers_policy_zero_slab(self):
        rules = RefundRules.model_validate({
            "slabs": [
                {"hoursBefore": 6, "refundPercentage": 60, "label": "Six hours"},
                {"hoursBefore": 0, "refundPercentage": 10, "label": "Goodwill"},
            ]
        })
        assert select_slab(rules, -2).label == "Goodwill"

    def test_fallback_without_zero_slab_is_synthetic(self):
        rules = RefundRules.model_validate({
            "slabs": [{"hoursBefore": 3, "refundPercentage": 50, "label": "Three hours"}]
        })
        slab = select_slab(rules, 1)
        assert slab == NO_REFUND_SLAB
        assert slab.label == "Less than 3 hours"

    def test_ties_resolve_to_first_listed(self):
        rules = RefundRules.model_validate({
            "slabs": [
                {"hoursBefore": 12, "refundPercentage": 70, "label": "first"},
                {"hoursBefore": 12, "refundPercentage": 80, "label": "second"},
            ]
        })
        assert select_slab(rules, 20).label == "first"

class TestInvariants:

    @pytest.mark.parametrize("amount", [0, 1, 999.99, 1000, 1234.57])
    @pytest.mark.parametrize("hours", [-10, 0, 2.5, 3, 11, 12, 20, 24, 72])
    def test_refund_and_deduction_sum_to_amount(self, rules, amount, hours):
        result = calculate_refund(amount, departing_in(hours), NOW, rules)
        fare = Decimal(str(amount))

        assert result.refund_amount + result.deduction_total == fare
        assert Decimal("0") <= result.refund_amount <= fare

    def test_refund_never_decreases_with_more_notice(self, rules):
        refunds = [
            calculate_refund(1000, departing_in(hours), NOW, rules).refund_amount
            for hours in [-5, 0, 1, 3, 6, 12, 18, 24, 48]
        ]
        assert refunds == sorted(refunds)

    def test_deductions_cover_total_when_above_convenience_fee(self, rules):
        for hours in (30, 20, 5, 1):
            result = calculate_refund(1000, departing_in(hours), NOW, rules)
            deductions = result.breakdown.deductions
            assert deductions.convenience + deductions.cancellation == result.deduction_total

    def test_generous_slab_keeps_full_convenience_line(self):
        rules = RefundRules.model_validate({
            "slabs": [
                {"hoursBefore": 6, "refundPercentage": 98, "label": "Six hours or more"},
                {"hoursBefore": 0, "refundPercentage": 0, "label": "Too late"},
            ]
        })
        result = calculate_refund(1000, departing_in(10), NOW, rules)
        deductions = result.breakdown.deductions

        assert result.refund_amount == Decimal("980")
        assert result.deduction_total == Decimal("20")
        assert deductions.convenience == Decimal("50")
        assert deductions.cancellation == Decimal("0")
        assert deductions.convenience + deductions.cancellation > result.deduction_total
        assert result.refund_amount + result.deduction_total == Decimal("1000")

    def test_configured_convenience_fee_is_not_applied(self):
        rules = RefundRules.model_validate({
            "slabs": STANDARD_RULES["slabs"],
            "fees": {"convenience": 12, "operatorDelay": 0},
        })
        result = calculate_refund(1000, departing_in(10), NOW, rules)
        assert result.breakdown.deductions.convenience == Decimal("50")

    def test_refund_rounds_down_to_the_cent(self, rules):
        result = calculate_refund("333.33", departing_in(13), NOW, rules)
        assert result.refund_amount == Decimal("249.99")
        assert result.deduction_total == Decimal("83.34")

    def test_percentages_outside_range_pass_through(self):
        rules = RefundRules.model_validate({
            "slabs": [{"hoursBefore": 0, "refundPercentage": 110, "label": "Bonus"}]
        })
        result = calculate_refund(100, departing_in(5), NOW, rules)
        assert result.refund_amount == Decimal("110")

class TestInputs:

    def test_accepts_raw_policy_document(self):
        result = calculate_refund(1000, departing_in(30), NOW, STANDARD_RULES)
        assert result.refund_amount == Decimal("950")

    def test_naive_datetimes_are_utc(self, rules):
        naive_departure = departing_in(30).replace(tzinfo=None)
        result = calculate_refund(1000, naive_departure, NOW, rules)
        assert result.breakdown.time_diff_hrs == 30.0

    def test_negative_amount_is_rejected(self, rules):
        with pytest.raises(InvalidRefundInput):
            calculate_refund(-1, departing_in(30), NOW, rules)

    def test_empty_slabs_are_rejected(self):
        with pytest.raises(InvalidRefundInput):
            calculate_refund(1000, departing_in(30), NOW, {"slabs": []})

    def test_missing_rules_are_rejected(self):
        with pytest.raises(InvalidRefundInput):
            calculate_refund(1000, departing_in(30), NOW)

    def test_hours_until_is_signed(self):
        assert hours_until(departing_in(-1.5), NOW) == -1.5

    def test_result_serializes_with_camel_case_keys(self, rules):
        payload = calculate_refund(1000, departing_in(30), NOW, rules).model_dump(mode="json", by_alias=True)

        assert set(payload) == {"refundAmount", "deductionTotal", "breakdown", "appliedSlab"}
        assert payload["breakdown"]["appliedSlab"] == "More than 24 hours before departure"
        assert payload["appliedSlab"]["hoursBefore"] == 24
        assert payload["breakdown"]["timeDiffHrs"] == 30.0
