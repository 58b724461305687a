from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from splitledger.services.amounts import InvalidAmountError
from splitledger.utils.parse import (
    is_exact_shares,
    parse_amount,
    parse_exact_shares,
    parse_initials,
    parse_initials_list,
    parse_ledger_date,
)


def test_parse_amount_formats():
    assert parse_amount("12") == Decimal("12")
    assert parse_amount("12,5") == Decimal("12.5")
    assert parse_amount("$7.25") == Decimal("7.25")


@pytest.mark.parametrize("text", ["0", "-5", "1.234", "abc", "", "1e3"])
def test_parse_amount_rejects(text):
    with pytest.raises(InvalidAmountError):
        parse_amount(text)


def test_parse_initials():
    assert parse_initials(" jg ") == "JG"
    assert parse_initials("жк") == "ЖК"


@pytest.mark.parametrize("text", ["J2", "J G", "ABCD", "", "J."])
def test_parse_initials_rejects(text):
    with pytest.raises(ValueError):
        parse_initials(text)


def test_parse_initials_list():
    assert parse_initials_list("jg, ML  cr") == ["JG", "ML", "CR"]
    with pytest.raises(ValueError):
        parse_initials_list("JG jg")
    with pytest.raises(ValueError):
        parse_initials_list("JG M1")


def test_parse_exact_shares():
    assert parse_exact_shares("jg=10 ML=5,50") == {"JG": Decimal("10"), "ML": Decimal("5.50")}
    assert is_exact_shares("JG=10")
    assert not is_exact_shares("JG ML")


@pytest.mark.parametrize("text", ["JG=10 JG=5", "JG:10", "=5", ""])
def test_parse_exact_shares_rejects(text):
    with pytest.raises(ValueError):
        parse_exact_shares(text)


def test_parse_ledger_date():
    tz = ZoneInfo("Europe/Moscow")
    assert parse_ledger_date("20.12.2025 19:00", tz) == datetime(2025, 12, 20, 16, 0, tzinfo=timezone.utc)
    assert parse_ledger_date("2025-12-20 19:00", tz) == datetime(2025, 12, 20, 16, 0, tzinfo=timezone.utc)
    assert parse_ledger_date("20/12/2025", tz) == datetime(2025, 12, 19, 21, 0, tzinfo=timezone.utc)


def test_parse_ledger_date_invalid():
    with pytest.raises(ValueError):
        parse_ledger_date("завтра", ZoneInfo("UTC"))
