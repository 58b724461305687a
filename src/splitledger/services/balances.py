from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Hashable, Iterable, Mapping, Sequence

from splitledger.services.amounts import ZERO, to_amount


@dataclass(frozen=True, slots=True)
class UserSums:
    paid: Decimal = ZERO
    owed: Decimal = ZERO
    payments_sent: Decimal = ZERO
    payments_received: Decimal = ZERO

    def validated(self) -> "UserSums":
        return UserSums(
            paid=to_amount(self.paid, field="paid"),
            owed=to_amount(self.owed, field="owed"),
            payments_sent=to_amount(self.payments_sent, field="payments_sent"),
            payments_received=to_amount(self.payments_received, field="payments_received"),
        )

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "UserSums":
        return cls(
            paid=row["paid"],
            owed=row["owed"],
            payments_sent=row["payments_sent"],
            payments_received=row["payments_received"],
        ).validated()

    @property
    def balance(self) -> Decimal:
        return (self.paid - self.payments_received) - (self.owed - self.payments_sent)


def _user_key(user: Any) -> Hashable:
    return getattr(user, "id", user)


def enumerate_user_ids(users: Iterable[Any], sums: Mapping[Hashable, UserSums]) -> list[Hashable]:
    ordered = dict.fromkeys(_user_key(user) for user in users)
    # пользователи, на которых ссылаются суммы, но которых нет в списке
    ordered.update(dict.fromkeys(sums))
    return list(ordered)


def compute_balances(
    users: Sequence[Any],
    sums: Mapping[Hashable, UserSums],
) -> dict[Hashable, Decimal]:
    user_ids = enumerate_user_ids(users, sums)
    validated = {user_id: sums.get(user_id, UserSums()).validated() for user_id in user_ids}
    return {user_id: validated[user_id].balance for user_id in user_ids}


def total_balance(balances: Mapping[Hashable, Decimal]) -> Decimal:
    return sum(balances.values(), ZERO)
