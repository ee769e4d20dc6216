from decimal import Decimal

import pytest

from src.common.utils.exceptions import InvalidArgumentError
from src.modules.packages.ledger import (
    allocate_payment, compute_totals, release_from_pool, remaining_amount
)


def test_compute_totals_applies_discount():
    totals = compute_totals(5000, 500, 9)
    assert totals.total_amount == Decimal("4500.00")
    assert totals.per_session_amount == Decimal("500.00")
    assert totals.total_sessions == 9


def test_per_session_amount_rounds_down_to_the_cent():
    totals = compute_totals(1000, 0, 3)
    assert totals.per_session_amount == Decimal("333.33")
    assert totals.per_session_amount * 3 <= totals.total_amount


@pytest.mark.parametrize("original,discount,sessions", [
    (100, 200, 1),
    (-1, 0, 1),
    (100, -5, 1),
    (100, 0, 0),
    (100, 0, -3),
])
def test_compute_totals_rejects_bad_input(original, discount, sessions):
    with pytest.raises(InvalidArgumentError):
        compute_totals(original, discount, sessions)


def test_payment_releases_whole_sessions_and_carries_remainder():
    allocation = allocate_payment(Decimal("1200"), Decimal("500"), 0, Decimal("0"), 9)
    assert allocation.sessions_released == 2
    assert allocation.released_sessions == 2
    assert allocation.carry_amount == Decimal("200.00")


def test_carry_tops_up_next_payment():
    allocation = allocate_payment(Decimal("300"), Decimal("500"), 2, Decimal("200"), 9)
    assert allocation.sessions_released == 1
    assert allocation.released_sessions == 3
    assert allocation.carry_amount == Decimal("0.00")


def test_carry_stays_below_per_session_amount():
    allocation = release_from_pool(Decimal("650"), Decimal("300"), 0, 5)
    assert allocation.sessions_released == 2
    assert Decimal("0") <= allocation.carry_amount < Decimal("300")


def test_release_is_capped_at_total_sessions_and_carry_cleared():
    allocation = allocate_payment(Decimal("10000"), Decimal("500"), 7, Decimal("100"), 9)
    assert allocation.released_sessions == 9
    assert allocation.sessions_released == 2
    assert allocation.carry_amount == Decimal("0.00")


def test_full_payment_releases_every_session_despite_rounding():
    totals = compute_totals(1000, 0, 3)
    allocation = allocate_payment(totals.total_amount, totals.per_session_amount, 0, 0, 3)
    assert allocation.released_sessions == 3
    assert allocation.carry_amount == Decimal("0.00")


def test_free_package_releases_everything():
    allocation = release_from_pool(Decimal("0"), Decimal("0"), 0, 4)
    assert allocation.released_sessions == 4
    assert allocation.carry_amount == Decimal("0.00")


@pytest.mark.parametrize("amount", [0, -10, "0.001"])
def test_non_positive_payment_is_rejected(amount):
    with pytest.raises(InvalidArgumentError):
        allocate_payment(Decimal(str(amount)), Decimal("500"), 0, Decimal("0"), 9)


def test_remaining_amount_is_clamped_at_zero():
    assert remaining_amount(Decimal("4500"), Decimal("1200")) == Decimal("3300.00")
    assert remaining_amount(Decimal("4500"), Decimal("5000")) == Decimal("0.00")
