from decimal import Decimal

import pytest

from splitledger.services.amounts import InvalidAmountError
from splitledger.services.balances import UserSums
from splitledger.services.pairwise import allocate_pairwise, resolve_pairwise_debts
from splitledger.services.settlement import SettlementSuggestion, simplify_debts


def D(value: str) -> Decimal:
    return Decimal(value)


def pairs(suggestions):
    return [(s.debtor_id, s.creditor_id, s.amount) for s in suggestions]


def test_debtors_walk_creditors_in_enumeration_order():
    sums = {
        "A": UserSums(paid=D("5")),
        "B": UserSums(paid=D("10")),
        "C": UserSums(owed=D("10")),
        "D": UserSums(owed=D("5")),
    }

    suggestions = resolve_pairwise_debts(["A", "B", "C", "D"], sums)

    assert pairs(suggestions) == [
        ("C", "A", D("5")),
        ("C", "B", D("5")),
        ("D", "B", D("5")),
    ]


def test_pairwise_differs_from_simplified_view():
    balances = {"A": D("5"), "B": D("10"), "C": D("-10"), "D": D("-5")}

    pairwise = allocate_pairwise(balances)
    simplified = simplify_debts(balances)

    assert len(pairwise) == 3
    assert pairs(simplified) == [("C", "B", D("10")), ("D", "A", D("5"))]


def test_pairwise_does_not_filter_by_epsilon():
    balances = {"A": D("0.005"), "B": D("-0.005")}

    assert allocate_pairwise(balances) == [SettlementSuggestion(debtor_id="B", creditor_id="A", amount=D("0.005"))]
    assert simplify_debts(balances) == []


def test_pairwise_uses_payments():
    sums = {
        "A": UserSums(paid=D("30"), owed=D("10"), payments_received=D("10")),
        "B": UserSums(owed=D("10"), payments_sent=D("10")),
        "C": UserSums(owed=D("10")),
    }

    assert pairs(resolve_pairwise_debts(["A", "B", "C"], sums)) == [("C", "A", D("10"))]


def test_pairwise_stops_when_creditors_exhausted():
    balances = {"A": D("3"), "B": D("-5")}

    assert pairs(allocate_pairwise(balances)) == [("B", "A", D("3"))]


def test_pairwise_preserves_user_order_not_magnitude():
    balances = {"small": D("1"), "D1": D("-4"), "big": D("3")}

    assert pairs(allocate_pairwise(balances)) == [("D1", "small", D("1")), ("D1", "big", D("3"))]


def test_pairwise_never_self_settles_and_settles_everyone():
    balances = {"A": D("12.40"), "B": D("-7.15"), "C": D("3.60"), "D": D("-8.85")}

    suggestions = allocate_pairwise(balances)

    after = dict(balances)
    for s in suggestions:
        assert s.debtor_id != s.creditor_id
        after[s.creditor_id] -= s.amount
        after[s.debtor_id] += s.amount
    assert all(value == 0 for value in after.values())


def test_pairwise_empty_and_settled():
    assert resolve_pairwise_debts([], {}) == []
    assert allocate_pairwise({"A": D("0"), "B": D("0")}) == []


def test_pairwise_rejects_invalid_sums():
    with pytest.raises(InvalidAmountError):
        resolve_pairwise_debts(["A"], {"A": UserSums(paid=D("-1"))})
