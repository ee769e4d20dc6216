# src/modules/packages/ledger.py
"""
Package ledger arithmetic.

Pure functions over Decimal amounts; the services load and persist rows and
call into here for every derived figure, so the rules live in one place:

- total_amount = original_amount - discount_amount
- per_session_amount = total_amount / total_sessions, rounded down to the cent
- a payment adds to the carry; every whole per_session_amount in the pool
  releases one session, the remainder stays as the new carry
- released sessions never exceed total_sessions, and the carry is zero once
  everything is released
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from src.common.utils.exceptions import InvalidArgumentError

Q2 = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(x) -> Decimal:
    return Decimal(str(x if x is not None else 0))


def q2(x) -> Decimal:
    return to_decimal(x).quantize(Q2, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PackageTotals:
    original_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    total_sessions: int
    per_session_amount: Decimal


@dataclass(frozen=True)
class Allocation:
    sessions_released: int
    released_sessions: int
    carry_amount: Decimal


def compute_totals(original_amount, discount_amount, total_sessions: int) -> PackageTotals:
    """Validate the purchase figures and derive total and per-session amounts."""
    original = q2(original_amount)
    discount = q2(discount_amount)

    if original < ZERO:
        raise InvalidArgumentError("Original amount cannot be negative.")
    if discount < ZERO:
        raise InvalidArgumentError("Discount amount cannot be negative.")
    if discount > original:
        raise InvalidArgumentError("Discount amount cannot exceed the original amount.")
    if total_sessions is None or int(total_sessions) != total_sessions or total_sessions < 1:
        raise InvalidArgumentError("Total sessions must be a whole number of at least 1.")

    total = original - discount
    per_session = (total / int(total_sessions)).quantize(Q2, rounding=ROUND_DOWN)

    return PackageTotals(
        original_amount=original,
        discount_amount=discount,
        total_amount=total,
        total_sessions=int(total_sessions),
        per_session_amount=per_session,
    )


def release_from_pool(
    pool,
    per_session_amount,
    released_sessions: int,
    total_sessions: int,
) -> Allocation:
    """Turn a money pool into newly released sessions plus a carry."""
    pool = q2(pool)
    per_session = q2(per_session_amount)

    if per_session <= ZERO:
        # Free packages have nothing to fund
        return Allocation(
            sessions_released=total_sessions - released_sessions,
            released_sessions=total_sessions,
            carry_amount=ZERO,
        )

    room = max(total_sessions - released_sessions, 0)
    sessions = min(int(pool // per_session), room)
    new_released = released_sessions + sessions
    carry = pool - per_session * sessions

    if new_released >= total_sessions:
        carry = ZERO

    return Allocation(
        sessions_released=sessions,
        released_sessions=new_released,
        carry_amount=q2(carry),
    )


def allocate_payment(
    amount_paid,
    per_session_amount,
    released_sessions: int,
    carry_amount,
    total_sessions: int,
) -> Allocation:
    """Apply one payment to a package's carry and released sessions."""
    amount = q2(amount_paid)
    if amount <= ZERO:
        raise InvalidArgumentError("Payment amount must be greater than zero.")
    return release_from_pool(
        to_decimal(carry_amount) + amount,
        per_session_amount,
        released_sessions,
        total_sessions,
    )


def remaining_amount(total_due, total_paid) -> Decimal:
    """Outstanding balance, never below zero."""
    remaining = q2(total_due) - q2(total_paid)
    return remaining if remaining > ZERO else ZERO

