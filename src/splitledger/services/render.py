from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence
from zoneinfo import ZoneInfo

from splitledger.db.models import User
from splitledger.services.amounts import format_amount, is_settled
from splitledger.services.ledger import DebtReport, DebtSummary, LedgerStats, UserBalance


def money(value: Decimal, symbol: str = "$") -> str:
    return f"{symbol}{format_amount(value)}"


def user_label(user: User) -> str:
    return f"{user.name} ({user.initials})"


def format_balances(balances: Sequence[UserBalance], symbol: str = "$") -> str:
    if not balances:
        return "Пользователей пока нет."

    lines = ["<b>⚖️ Балансы</b>", ""]
    for item in balances:
        if is_settled(item.balance):
            status = "в расчёте"
        elif item.balance > 0:
            status = f"ему должны {money(item.balance, symbol)}"
        else:
            status = f"должен {money(-item.balance, symbol)}"
        lines.append(f"• {user_label(item.user)}: {status}")
    return "\n".join(lines)


def format_debts(debts: Iterable[DebtSummary], symbol: str = "$") -> list[str]:
    return [
        f"• {debt.debtor.name} → {debt.creditor.name}: <b>{money(debt.amount, symbol)}</b>"
        for debt in debts
    ]


def format_debt_report(report: DebtReport, symbol: str = "$") -> str:
    lines = ["<b>💸 Кто кому должен</b>", ""]
    debt_lines = format_debts(report.debts, symbol)
    lines.extend(debt_lines or ["Нет долгов — все в расчёте 🎉"])
    if report.warning:
        lines.append("")
        lines.append(
            f"⚠️ Данные не сходятся: остаток {money(report.residual, symbol)} не удалось распределить. "
            "Проверьте доли участников в расходах."
        )
    return "\n".join(lines)


def format_pairwise(debts: Sequence[DebtSummary], symbol: str = "$") -> str:
    lines = ["<b>🔗 Попарные долги</b>", ""]
    lines.extend(format_debts(debts, symbol) or ["Нет долгов — все в расчёте 🎉"])
    return "\n".join(lines)


def format_stats(stats: LedgerStats, symbol: str = "$") -> str:
    return "\n".join(
        [
            "<b>📊 Общая сводка</b>",
            "",
            f"Всего потрачено: <b>{money(stats.total_spent, symbol)}</b>",
            f"Расходов за месяц: <b>{stats.monthly_expenses}</b>",
            f"В среднем на человека: <b>{money(stats.average_per_person, symbol)}</b>",
        ]
    )


def format_users(users: Sequence[User]) -> str:
    if not users:
        return "Пользователей пока нет. Добавьте: /adduser Имя | ИН"

    active = [user for user in users if user.active]
    inactive = [user for user in users if not user.active]
    lines = [f"<b>👥 Активные ({len(active)})</b>"]
    lines.extend(f"• {user_label(user)}" for user in active)
    if inactive:
        lines.append("")
        lines.append(f"<b>Неактивные ({len(inactive)})</b>")
        lines.extend(f"• {user_label(user)}" for user in inactive)
    return "\n".join(lines)


def format_payments(rows: Sequence[Mapping[str, Any]], tz: ZoneInfo, symbol: str = "$") -> str:
    if not rows:
        return "Платежей пока нет."

    total = sum((row["amount"] for row in rows), Decimal(0))
    lines = [f"<b>🧾 Платежи ({len(rows)})</b> на сумму {money(total, symbol)}", ""]
    for row in rows:
        when = row["payment_date"].astimezone(tz).strftime("%d.%m.%Y %H:%M")
        line = f"• {row['from_initials']} → {row['to_initials']}: {money(row['amount'], symbol)} ({when})"
        if row.get("description"):
            line += f" — {row['description']}"
        lines.append(line)
        lines.append(f"  <code>{row['id']}</code>")
    return "\n".join(lines)


def format_expenses(rows: Sequence[Mapping[str, Any]], tz: ZoneInfo, symbol: str = "$") -> str:
    if not rows:
        return "Расходов пока нет."

    lines = [f"<b>🛒 Последние расходы ({len(rows)})</b>", ""]
    for row in rows:
        when = row["date"].astimezone(tz).strftime("%d.%m.%Y")
        lines.append(
            f"• {row['description']}: {money(row['amount'], symbol)}, платил {row['payer_initials']}, "
            f"участников {row['participants']} ({when})"
        )
        lines.append(f"  <code>{row['id']}</code>")
    return "\n".join(lines)
