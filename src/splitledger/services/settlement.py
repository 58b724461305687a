from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable, List, Mapping

from splitledger.logging import get_logger
from splitledger.services.amounts import EPSILON, ZERO, format_amount


class DataIntegrityWarning(UserWarning):
    """Остаток после взаимозачёта больше epsilon: суммы расходов и долей не сходятся."""


@dataclass(frozen=True, slots=True)
class SettlementSuggestion:
    debtor_id: Hashable
    creditor_id: Hashable
    amount: Decimal

    @property
    def display_amount(self) -> str:
        return format_amount(self.amount)


@dataclass(slots=True)
class SettlementPlan:
    suggestions: list[SettlementSuggestion] = field(default_factory=list)
    unmatched_credit: Decimal = ZERO
    unmatched_debit: Decimal = ZERO

    @property
    def residual(self) -> Decimal:
        return self.unmatched_credit + self.unmatched_debit

    def is_consistent(self, epsilon: Decimal = EPSILON) -> bool:
        return self.residual <= epsilon


def split_positions(
    balances: Mapping[Hashable, Decimal],
    epsilon: Decimal = EPSILON,
) -> tuple[list[tuple[Hashable, Decimal]], list[tuple[Hashable, Decimal]]]:
    creditors: list[tuple[Hashable, Decimal]] = []
    debtors: list[tuple[Hashable, Decimal]] = []

    for user_id, balance in balances.items():
        if balance > epsilon:
            creditors.append((user_id, balance))
        elif balance < -epsilon:
            debtors.append((user_id, -balance))

    # sort() стабилен: при равных суммах сохраняется исходный порядок пользователей
    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)
    return creditors, debtors


def plan_settlement(balances: Mapping[Hashable, Decimal], epsilon: Decimal = EPSILON) -> SettlementPlan:
    creditors, debtors = split_positions(balances, epsilon)

    plan = SettlementPlan()
    i, j = 0, 0

    while i < len(creditors) and j < len(debtors):
        cred_id, cred_amount = creditors[i]
        debt_id, debt_amount = debtors[j]

        transfer_amount = min(cred_amount, debt_amount)
        plan.suggestions.append(
            SettlementSuggestion(debtor_id=debt_id, creditor_id=cred_id, amount=transfer_amount)
        )

        cred_amount -= transfer_amount
        debt_amount -= transfer_amount
        creditors[i] = (cred_id, cred_amount)
        debtors[j] = (debt_id, debt_amount)

        if cred_amount < epsilon:
            i += 1
        if debt_amount < epsilon:
            j += 1

    plan.unmatched_credit = sum((amount for _, amount in creditors[i:]), ZERO)
    plan.unmatched_debit = sum((amount for _, amount in debtors[j:]), ZERO)

    if not plan.is_consistent(epsilon):
        log = get_logger(__name__)
        log.warning(
            "settlement.residual",
            unmatched_credit=str(plan.unmatched_credit),
            unmatched_debit=str(plan.unmatched_debit),
            suggestions=len(plan.suggestions),
        )
        warnings.warn(
            DataIntegrityWarning(
                f"unmatched residual {format_amount(plan.residual)} after settlement: "
                "expense shares do not sum to expense totals"
            ),
            stacklevel=2,
        )

    return plan


def simplify_debts(balances: Mapping[Hashable, Decimal], epsilon: Decimal = EPSILON) -> List[SettlementSuggestion]:
    """Минимальный набор переводов без сведений об остатке.

    При несходящемся остатке выдаётся ``DataIntegrityWarning``, но фильтр
    предупреждений по умолчанию показывает его один раз на место вызова.
    На каждый вызов надёжно приходит только событие structlog
    ``settlement.residual``. Кому нужен остаток, вызывает ``plan_settlement``
    и проверяет ``SettlementPlan.is_consistent``.
    """
    return plan_settlement(balances, epsilon).suggestions
