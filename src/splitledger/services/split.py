from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Hashable, Mapping, Sequence

from splitledger.services.amounts import CENT, ZERO, InvalidAmountError, to_amount, to_positive_amount


def split_amount(amount: Decimal, participants: Sequence[Hashable]) -> dict[Hashable, Decimal]:
    amount = to_amount(amount, field="amount")
    if amount != amount.quantize(CENT):
        raise InvalidAmountError(amount, "amount must have at most two fractional digits", "amount")
    if not participants:
        raise ValueError("participants must not be empty")
    if len(set(participants)) != len(participants):
        raise ValueError("participants must be unique")

    n = len(participants)
    base_share = (amount / n).quantize(CENT, rounding=ROUND_DOWN)

    shares = [base_share for _ in participants]
    remainder = amount - base_share * n

    # остаток раздаём по копейке первым участникам
    idx = 0
    while remainder > 0:
        shares[idx] += CENT
        remainder -= CENT
        idx = (idx + 1) % n

    return {participant: share for participant, share in zip(participants, shares)}


def validate_shares(amount: Decimal, shares: Mapping[Hashable, Decimal]) -> dict[Hashable, Decimal]:
    amount = to_positive_amount(amount, field="amount")
    if not shares:
        raise ValueError("participants must not be empty")

    validated = {user_id: to_amount(share, field="share") for user_id, share in shares.items()}
    total = sum(validated.values(), ZERO)
    if total != amount:
        raise InvalidAmountError(total, f"participant shares must sum to {amount}", "shares")
    return validated
