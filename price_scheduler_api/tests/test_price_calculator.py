import math
import pytest

from price_scheduler.core.price_calculator import compute_price, round_price, to_number, validate_adjustment


def test_percentage_increase():
    assert compute_price(100, "increase", "percentage", percentage=25) == 125.0


def test_fixed_decrease_with_up_99():
    assert compute_price(100, "decrease", "fixed", fixed_amount=30, rounding="up_99") == 70.99


def test_decrease_is_clamped_at_zero():
    assert compute_price(5, "decrease", "fixed", fixed_amount=10) == 0


def test_unknown_adjust_type_decreases():
    assert compute_price(50, "sideways", "fixed", fixed_amount=5) == 45.0


def test_string_and_invalid_old_price():
    assert compute_price("19.90", "increase", "fixed", fixed_amount="0.10") == 20.0
    assert compute_price("abc", "increase", "fixed", fixed_amount=3) == 3.0
    assert compute_price(None, "decrease", "percentage", percentage=10) == 0


def test_missing_percentage_counts_as_zero():
    assert compute_price(40, "increase", "percentage") == 40.0


@pytest.mark.parametrize("value,expected", [
    (10.01, 10.99),
    (10.99, 10.99),
    (10.0, 10.99),
    (0.2, 0.99),
])
def test_up_99(value, expected):
    assert round_price(value, "up_99") == expected


def test_none_rounding_is_half_up_to_cents():
    assert round_price(1.005, "none") == 1.01
    assert round_price(2.344, "none") == 2.34


def test_whole_rounding_modes():
    assert round_price(10.5, "nearest_whole") == 11
    assert round_price(10.49, "nearest_whole") == 10
    assert round_price(10.99, "down_whole") == 10


@pytest.mark.parametrize("old_price", [0.01, 3.3, 19.99, 47.5, 100, 1234.567])
@pytest.mark.parametrize("pct", [0, 7.5, 33, 100])
def test_rounding_properties(old_price, pct):
    for direction in ("increase", "decrease"):
        nearest = compute_price(old_price, direction, "percentage", pct, rounding="nearest_whole")
        down = compute_price(old_price, direction, "percentage", pct, rounding="down_whole")
        up_99 = compute_price(old_price, direction, "percentage", pct, rounding="up_99")
        plain = compute_price(old_price, direction, "percentage", pct)

        assert nearest == int(nearest)
        assert down == int(down)
        assert abs((up_99 - math.floor(up_99)) - 0.99) < 1e-9
        assert plain >= 0


def test_compute_price_is_deterministic():
    args = (59.95, "decrease", "percentage", 15, None, "up_99")
    assert compute_price(*args) == compute_price(*args)


def test_to_number_rejects_non_finite():
    assert to_number(float("inf"), 1.0) == 1.0
    assert to_number("nan", 2.0) == 2.0
    assert to_number(True, 3.0) == 3.0
    assert to_number("4.5") == 4.5


@pytest.mark.parametrize("kwargs,message", [
    ({"adjust_type": "up", "amount_type": "fixed", "fixed_amount": 1}, "Invalid adjustType (use increase/decrease)"),
    ({"adjust_type": "increase", "amount_type": "percentage"}, "percentage is required"),
    ({"adjust_type": "increase", "amount_type": "percentage", "percentage": 101}, "percentage must be between 0 and 100"),
    ({"adjust_type": "decrease", "amount_type": "fixed"}, "fixedAmount is required"),
    ({"adjust_type": "decrease", "amount_type": "fixed", "fixed_amount": -1}, "fixedAmount must be >= 0"),
    ({"adjust_type": "decrease", "amount_type": "fixed", "fixed_amount": 1, "rounding": "up_95"}, "Invalid rounding option"),
])
def test_validate_adjustment_messages(kwargs, message):
    assert validate_adjustment(**kwargs) == message


def test_validate_adjustment_accepts_valid():
    assert validate_adjustment("increase", "percentage", 10, None, "nearest_whole") is None
