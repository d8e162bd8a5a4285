import pytest

from worksheet.compute.formatting import (
    format_aggregate,
    format_average,
    format_count,
    format_difference,
    format_percentage_change,
    to_fixed,
)


@pytest.mark.parametrize(
    "x, digits, expected",
    [
        (2.5, 0, "3"),
        (-2.5, 0, "-3"),
        (0.25, 1, "0.3"),
        (1.005, 2, "1.00"),
        (15.0, 0, "15"),
        (15.0, 1, "15.0"),
        (0.0, 1, "0.0"),
        (-0.0, 1, "0.0"),
        (-0.04, 1, "-0.0"),
        (1234567.891, 1, "1234567.9"),
    ],
)
def test_to_fixed(x: float, digits: int, expected: str) -> None:
    assert to_fixed(x, digits) == expected


def test_to_fixed_rejects_non_finite() -> None:
    with pytest.raises(ValueError):
        to_fixed(float("nan"), 1)


def test_aggregate_formats() -> None:
    assert format_aggregate(15.0, "integer") == "15"
    assert format_aggregate(15.0, None) == "15.0"
    assert format_aggregate(15.0, "number") == "15.0"
    assert format_average(7 / 3) == "2.3"
    assert format_difference(-3.25) == "-3.3"
    assert format_count(4) == "4 items"


def test_percentage_change_sign() -> None:
    assert format_percentage_change(35.0, 45.0, 80.0) == "+35% (45% → 80%)"
    assert format_percentage_change(-20.0, 60.0, 40.0) == "-20% (60% → 40%)"
    assert format_percentage_change(0.0, 50.0, 50.0) == "0% (50% → 50%)"
