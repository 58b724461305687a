"""Попарное распределение долей без глобального взаимозачёта.

В отличие от :func:`splitledger.services.settlement.simplify_debts` здесь нет
сортировки и фильтрации по epsilon: должники и кредиторы обходятся в том
порядке, в котором их вернуло хранилище, поэтому видно, кто конкретно кому
должен. Переводов обычно получается больше, это ожидаемо.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Hashable, List, Mapping, Sequence

from splitledger.services.amounts import ZERO
from splitledger.services.balances import UserSums, compute_balances
from splitledger.services.settlement import SettlementSuggestion


def allocate_pairwise(balances: Mapping[Hashable, Decimal]) -> List[SettlementSuggestion]:
    creditors = [[user_id, balance] for user_id, balance in balances.items() if balance > 0]
    debtors = [(user_id, -balance) for user_id, balance in balances.items() if balance < 0]

    suggestions: list[SettlementSuggestion] = []
    for debt_id, debt_amount in debtors:
        remaining = debt_amount
        for creditor in creditors:
            if remaining <= ZERO:
                break
            cred_id, credit = creditor
            if credit <= ZERO:
                continue

            amount = min(remaining, credit)
            suggestions.append(SettlementSuggestion(debtor_id=debt_id, creditor_id=cred_id, amount=amount))
            remaining -= amount
            creditor[1] = credit - amount

    return suggestions


def resolve_pairwise_debts(
    users: Sequence[Any],
    sums: Mapping[Hashable, UserSums],
) -> List[SettlementSuggestion]:
    return allocate_pairwise(compute_balances(users, sums))
