"""Tests for amount conversion and the token registry."""

from decimal import Decimal

import pytest

from jupitrails.amounts import to_amount, to_base_units, to_decimal
from jupitrails.tokens import Token, TokenRegistry

from conftest import SOL, USDC


class TestToBaseUnits:
    """Tests for human -> base unit conversion."""

    def test_whole_amount(self):
        assert to_base_units(1, 9) == "1000000000"
        assert to_base_units("150", 6) == "150000000"

    def test_float_input_has_no_binary_noise(self):
        assert to_base_units(0.1, 6) == "100000"
        assert to_base_units(1.1, 9) == "1100000000"

    def test_never_rounds_up(self):
        """Extra precision is floored so we never request more than typed."""
        assert to_base_units("1.23456789", 6) == "1234567"
        assert to_base_units("0.0000009", 6) == "0"

    def test_zero_decimals(self):
        assert to_base_units("42.9", 0) == "42"

    def test_zero_amount(self):
        assert to_base_units(0, 9) == "0"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_base_units("-1", 9)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            to_base_units("abc", 9)


class TestToDecimal:
    """Tests for base unit -> display conversion."""

    def test_usdc_display(self):
        assert to_decimal("150000000", 6) == "150.0000"

    def test_truncates_instead_of_rounding(self):
        assert to_decimal("123456789", 9) == "0.1234"
        assert to_decimal("999999", 6) == "0.9999"

    def test_fewer_than_four_decimals(self):
        assert to_decimal("12345", 2) == "123.45"
        assert to_decimal("42", 0) == "42"

    def test_zero(self):
        assert to_decimal("0", 9) == "0.0000"

    def test_large_amount_keeps_all_integer_digits(self):
        assert to_decimal("18446744073709551615", 9) == "18446744073.7095"

    def test_rejects_non_integer(self):
        with pytest.raises(ValueError):
            to_decimal("1.5", 6)

    def test_too_many_digits_is_value_error(self):
        with pytest.raises(ValueError):
            to_decimal("9" * 90, 6)

    def test_to_amount_is_exact(self):
        assert to_amount("123456789", 9) == Decimal("0.123456789")


@pytest.mark.parametrize("decimals", [0, 2, 6, 9])
@pytest.mark.parametrize("amount", ["0", "1", "0.5", "123.456789", "0.00012345"])
def test_round_trip_within_display_precision(amount, decimals):
    """Display is lossy but always within 10^-min(d, 4) of what was typed."""
    value = Decimal(amount)
    shown = Decimal(to_decimal(to_base_units(value, decimals), decimals))
    assert abs(shown - value) < Decimal(10) ** -min(decimals, 4)


class TestTokenRegistry:
    """Tests for the immutable token registry."""

    def test_lookup_by_mint(self):
        registry = TokenRegistry([SOL, USDC])

        assert registry.by_mint(SOL.mint) is SOL
        assert registry.by_mint("unknown") is None
        assert SOL.mint in registry
        assert len(registry) == 2

    def test_lookup_by_symbol(self):
        registry = TokenRegistry([SOL, USDC])

        assert registry.by_symbol("usdc") is USDC
        assert registry.by_symbol("BONK") is None

    def test_symbol_for_unknown_mint_is_abbreviated(self):
        registry = TokenRegistry([SOL])

        assert registry.symbol_for(SOL.mint) == "SOL"
        assert registry.symbol_for("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263") == "DezXAZ"

    def test_replace_returns_new_registry(self):
        registry = TokenRegistry([SOL])
        bonk = Token(mint="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", decimals=5, symbol="BONK")

        refreshed = registry.replace([SOL, bonk])

        assert refreshed is not registry
        assert registry.by_mint(bonk.mint) is None
        assert refreshed.by_mint(bonk.mint) is bonk
