from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from splitledger.services.amounts import InvalidAmountError, to_positive_amount

AMOUNT_RE = re.compile(r"^\d+(?:[.,]\d{1,2})?$")
INITIALS_PATTERN = r"[A-Za-zА-Яа-яЁё]{1,3}"
INITIALS_RE = re.compile(rf"^{INITIALS_PATTERN}$")
SHARE_RE = re.compile(rf"^({INITIALS_PATTERN})=(\S+)$")


def parse_amount(text: str) -> Decimal:
    """Сумма из сообщения: «12», «12.5», «12,50». Не более двух знаков после запятой."""
    value = text.strip().lstrip("$€₽").strip()
    if not AMOUNT_RE.match(value):
        raise InvalidAmountError(text, "expected a positive amount with at most two decimals", "amount")
    return to_positive_amount(value.replace(",", "."), field="amount")


def parse_initials(text: str) -> str:
    """Инициалы участника: от одной до трёх букв, без цифр и пробелов."""
    value = text.strip()
    if not INITIALS_RE.match(value):
        raise ValueError(f"Инициалы должны состоять из 1-3 букв: {value}")
    return value.upper()


def parse_initials_list(text: str) -> list[str]:
    initials = [parse_initials(part) for part in text.replace(",", " ").split()]
    if len(set(initials)) != len(initials):
        raise ValueError("Участники повторяются")
    return initials


def parse_exact_shares(text: str) -> dict[str, Decimal]:
    """Разбор долей вида «JG=10 ML=5.50»."""
    shares: dict[str, Decimal] = {}
    for part in re.split(r"[\s;]+", text.strip()):
        if not part:
            continue
        match = SHARE_RE.match(part.rstrip(","))
        if not match:
            raise ValueError(f"Не удалось разобрать долю: {part}")
        initials = match.group(1).upper()
        if initials in shares:
            raise ValueError(f"Участник {initials} указан дважды")
        shares[initials] = parse_amount(match.group(2))
    if not shares:
        raise ValueError("Не указаны доли участников")
    return shares


def is_exact_shares(text: str) -> bool:
    return "=" in text


def parse_ledger_date(text: str, tz: ZoneInfo) -> datetime:
    """
    Дата расхода или платежа. Возвращается в UTC.

    Поддерживаемые форматы:
    - 20.12.2025
    - 20.12.2025 19:00
    - 2025-12-20 19:00
    """
    text = text.strip()

    match = re.fullmatch(r"(\d{1,2})[\.\-/](\d{1,2})[\.\-/](\d{4})(?:\s+(\d{1,2}):(\d{2}))?", text)
    if match:
        day, month, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
        hour = int(match.group(4) or 0)
        minute = int(match.group(5) or 0)
    else:
        match = re.fullmatch(r"(\d{4})-(\d{1,2})-(\d{1,2})(?:\s+(\d{1,2}):(\d{2}))?", text)
        if not match:
            raise ValueError("Не удалось распознать дату")
        year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
        hour = int(match.group(4) or 0)
        minute = int(match.group(5) or 0)

    naive = datetime(year, month, day, hour, minute)
    aware = naive.replace(tzinfo=tz)
    return aware.astimezone(ZoneInfo("UTC"))
