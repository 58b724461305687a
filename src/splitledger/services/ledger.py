from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Hashable, Optional, Protocol, Sequence

from splitledger.db.models import User
from splitledger.logging import get_logger
from splitledger.services.amounts import EPSILON, ZERO, is_settled
from splitledger.services.balances import UserSums, compute_balances, total_balance
from splitledger.services.pairwise import allocate_pairwise
from splitledger.services.settlement import DataIntegrityWarning, SettlementSuggestion, plan_settlement


class LedgerStore(Protocol):
    async def list_users(self, include_inactive: bool = True) -> list[User]: ...

    async def fetch_user_sums(self) -> dict[Hashable, UserSums]: ...

    async def get_total_spent(self) -> Decimal: ...

    async def get_monthly_expense_count(self, year: int, month: int) -> int: ...


@dataclass(slots=True)
class LedgerSnapshot:
    users: list[User]
    sums: dict[Hashable, UserSums]

    def user_map(self) -> dict[Hashable, User]:
        return {user.id: user for user in self.users}


@dataclass(slots=True)
class UserBalance:
    user: User
    balance: Decimal

    @property
    def is_settled(self) -> bool:
        return is_settled(self.balance)


@dataclass(slots=True)
class DebtSummary:
    debtor: User
    creditor: User
    amount: Decimal


@dataclass(slots=True)
class DebtReport:
    debts: list[DebtSummary] = field(default_factory=list)
    residual: Decimal = ZERO
    warning: Optional[str] = None


@dataclass(slots=True)
class LedgerStats:
    total_spent: Decimal
    monthly_expenses: int
    average_per_person: Decimal


@dataclass(slots=True)
class IntegrityReport:
    total_balance: Decimal
    residual: Decimal
    ok: bool


async def load_snapshot(store: LedgerStore) -> LedgerSnapshot:
    users = await store.list_users()
    sums = await store.fetch_user_sums()
    return LedgerSnapshot(users=users, sums=sums)


def _resolve(snapshot: LedgerSnapshot, suggestions: Sequence[SettlementSuggestion]) -> list[DebtSummary]:
    users = snapshot.user_map()
    debts: list[DebtSummary] = []
    for suggestion in suggestions:
        debtor = users.get(suggestion.debtor_id)
        creditor = users.get(suggestion.creditor_id)
        if debtor is None or creditor is None:
            raise LookupError(f"unknown user in settlement: {suggestion}")
        debts.append(DebtSummary(debtor=debtor, creditor=creditor, amount=suggestion.amount))
    return debts


async def get_balances(store: LedgerStore) -> list[UserBalance]:
    snapshot = await load_snapshot(store)
    balances = compute_balances(snapshot.users, snapshot.sums)
    users = snapshot.user_map()
    return [
        UserBalance(user=users[user_id], balance=balance)
        for user_id, balance in balances.items()
        if user_id in users
    ]


async def get_debt_summary(store: LedgerStore, epsilon: Decimal = EPSILON) -> DebtReport:
    snapshot = await load_snapshot(store)
    balances = compute_balances(snapshot.users, snapshot.sums)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DataIntegrityWarning)
        plan = plan_settlement(balances, epsilon)

    report = DebtReport(debts=_resolve(snapshot, plan.suggestions), residual=plan.residual)
    for item in caught:
        if issubclass(item.category, DataIntegrityWarning):
            report.warning = str(item.message)
    return report


async def get_pairwise_summary(store: LedgerStore) -> list[DebtSummary]:
    snapshot = await load_snapshot(store)
    suggestions = allocate_pairwise(compute_balances(snapshot.users, snapshot.sums))
    return _resolve(snapshot, suggestions)


async def get_stats(store: LedgerStore, year: int | None = None, month: int | None = None) -> LedgerStats:
    now = datetime.now(timezone.utc)
    year = year or now.year
    month = month or now.month

    total_spent = await store.get_total_spent()
    monthly_count = await store.get_monthly_expense_count(year, month)
    users = await store.list_users(include_inactive=False)

    return LedgerStats(
        total_spent=total_spent,
        monthly_expenses=monthly_count,
        average_per_person=total_spent / max(len(users), 1),
    )


async def check_integrity(store: LedgerStore, epsilon: Decimal = EPSILON) -> IntegrityReport:
    snapshot = await load_snapshot(store)
    balances = compute_balances(snapshot.users, snapshot.sums)
    total = total_balance(balances)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DataIntegrityWarning)
        plan = plan_settlement(balances, epsilon)

    report = IntegrityReport(
        total_balance=total,
        residual=plan.residual,
        ok=is_settled(total, epsilon) and plan.is_consistent(epsilon),
    )
    log = get_logger(__name__)
    if report.ok:
        log.info("ledger.integrity.ok", users=len(balances))
    else:
        log.warning("ledger.integrity.broken", total_balance=str(total), residual=str(plan.residual))
    return report
