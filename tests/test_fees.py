"""Tests for fee tagging and minimum-output arithmetic."""

import pytest

from bridgesend.core.errors import FeeExceedsAmount, MissingParameter
from bridgesend.core.fees import DEFAULT_FEE_ID, TaggedFee, compute_min_output, with_disambiguating_id


@pytest.mark.parametrize(
    "fee, expected",
    [
        (0, 0),
        (5, 5),
        (123, 123),
        (999_999, 999_999),
        (1_500_000, 1_123_456),
        (2_000_000_000_000_000, 2_000_000_000_123_456),
    ],
)
def test_with_disambiguating_id_stamps_low_digits(fee, expected):
    tagged = with_disambiguating_id(fee)

    assert tagged.value == expected
    assert tagged.raw == fee
    assert tagged.fee_id == DEFAULT_FEE_ID


def test_custom_fee_id():
    assert with_disambiguating_id(10_000, "42").value == 10_042


def test_tagging_twice_is_a_no_op():
    tagged = with_disambiguating_id(1_500_000)

    assert with_disambiguating_id(tagged) is tagged


def test_missing_fee():
    with pytest.raises(MissingParameter):
        with_disambiguating_id(None)


def test_negative_fee_rejected():
    with pytest.raises(ValueError):
        with_disambiguating_id(-1)


def test_compute_min_output_subtracts_tagged_fee():
    assert compute_min_output(100, with_disambiguating_id(5)) == 95


def test_compute_min_output_at_floor():
    assert compute_min_output(5, with_disambiguating_id(5)) == 0


def test_compute_min_output_never_negative():
    with pytest.raises(FeeExceedsAmount):
        compute_min_output(8, with_disambiguating_id(10))


def test_compute_min_output_rejects_raw_fee():
    with pytest.raises(TypeError):
        compute_min_output(100, 5)


def test_compute_min_output_requires_bound():
    with pytest.raises(MissingParameter):
        compute_min_output(None, TaggedFee(value=1, raw=1, fee_id=DEFAULT_FEE_ID))


def test_tagged_fee_int_conversion():
    assert int(with_disambiguating_id(7)) == 7
