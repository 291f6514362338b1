import pytest

from commission_api.services.commission import (
    CommissionRule, apply_rule, calculate_commission, calculate_developer_bonus,
)


def test_percentage_commission():
    assert calculate_commission(1000, "percentage", 10) == 100


def test_fixed_commission_ignores_base():
    assert calculate_commission(1000, "fixed", 500) == 500
    assert calculate_commission(0, "fixed", 500) == 500


def test_percentage_above_hundred_is_not_capped():
    assert calculate_commission(1000, "percentage", 150) == 1500


def test_apply_rule_matches_calculate():
    assert apply_rule(2000, CommissionRule("percentage", 5)) == calculate_commission(2000, "percentage", 5)


def test_developer_bonus_without_developers_is_zero():
    assert calculate_developer_bonus(50000, 0) == 0


@pytest.mark.parametrize("pool,count", [(50000, 1), (50000, 3), (10, 7)])
def test_developer_bonus_split_sums_to_pool(pool, count):
    share = calculate_developer_bonus(pool, count)
    assert share * count == pytest.approx(pool)
