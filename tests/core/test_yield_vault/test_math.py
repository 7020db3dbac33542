"""Tests for src/core/yield_vault/math.py: share issuance / redemption rounding."""

import pytest

from src.core.yield_vault.math import (
    calculate_shares,
    mul_div_ceil,
    mul_div_floor,
    principal_released,
    redeem_value,
    shares_for_withdrawal,
)


class TestMulDiv:
    def test_floor_exact(self):
        assert mul_div_floor(10, 10, 5) == 20

    def test_floor_truncates(self):
        assert mul_div_floor(10, 1, 3) == 3

    def test_ceil_rounds_up(self):
        assert mul_div_ceil(10, 1, 3) == 4

    def test_ceil_exact_no_bump(self):
        assert mul_div_ceil(9, 1, 3) == 3

    def test_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            mul_div_floor(1, 1, 0)
        with pytest.raises(ZeroDivisionError):
            mul_div_ceil(1, 1, 0)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            mul_div_floor(-1, 1, 1)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            mul_div_floor(True, 1, 1)

    def test_uint256_scale_no_overflow(self):
        big = 2**256 - 1
        assert mul_div_floor(big, big, big) == big


class TestCalculateShares:
    def test_first_deposit_is_one_to_one(self):
        assert calculate_shares(100_000_000, 0, 0) == 100_000_000

    def test_first_deposit_ignores_residual_value(self):
        # Dust left behind by earlier holders does not change 1:1 seeding.
        assert calculate_shares(500, 0, 3) == 500

    def test_proportional_without_yield(self):
        assert calculate_shares(100, 100, 100) == 100

    def test_proportional_with_yield(self):
        # 105 value backs 100 shares: 100 more units buy floor(100*100/105) = 95.
        assert calculate_shares(100, 100, 105) == 95

    def test_tiny_deposit_rounds_to_zero(self):
        assert calculate_shares(1, 100, 1_000) == 0


class TestRedeemValue:
    def test_no_shares_outstanding(self):
        assert redeem_value(0, 0, 123) == 0

    def test_floor(self):
        assert redeem_value(1, 3, 10) == 3

    def test_full_redemption(self):
        assert redeem_value(95, 95, 105) == 105


class TestSharesForWithdrawal:
    def test_exact(self):
        assert shares_for_withdrawal(50, 100, 100) == 50

    def test_ceil(self):
        # 10 units out of 105 value backed by 100 shares needs 9.52.. -> 10 shares.
        assert shares_for_withdrawal(10, 100, 105) == 10
        assert shares_for_withdrawal(1, 100, 105) == 1

    def test_never_undercollects(self):
        for amount in range(1, 50):
            s = shares_for_withdrawal(amount, 97, 131)
            assert redeem_value(s, 97, 131) >= amount


class TestPrincipalReleased:
    def test_proportional(self):
        assert principal_released(1_000, 250, 1_000) == 250

    def test_floor(self):
        assert principal_released(100, 1, 3) == 33

    def test_all_shares_release_all(self):
        assert principal_released(101, 3, 3) == 101
