from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from splitledger.config import get_settings
from splitledger.db.repo import get_global_repository
from splitledger.handlers.common import UnknownUserError, command_args, resolve_user
from splitledger.keyboards import MENU_EXPENSES, back_keyboard
from splitledger.logging import get_logger
from splitledger.services.amounts import InvalidAmountError, format_amount
from splitledger.services.render import format_expenses
from splitledger.services.split import split_amount
from splitledger.utils.parse import (
    is_exact_shares,
    parse_amount,
    parse_exact_shares,
    parse_initials_list,
    parse_ledger_date,
)

expenses_router = Router()
log = get_logger(__name__)

USAGE = (
    "Использование:\n"
    "/addexpense <кто платил> | <описание> | <сумма> | JG ML CR [| дата]\n"
    "/addexpense <кто платил> | <описание> | <сумма> | JG=10 ML=5 [| дата]"
)


async def expenses_text() -> str:
    settings = get_settings()
    rows = await get_global_repository().list_expenses()
    return format_expenses(rows, settings.zoneinfo, settings.currency_symbol)


@expenses_router.message(Command("addexpense"))
async def cmd_addexpense(message: Message) -> None:
    repo = get_global_repository()
    settings = get_settings()
    parts = [part.strip() for part in command_args(message).split("|")]
    if len(parts) < 4:
        await message.answer(USAGE)
        return

    payer_initials, description, amount_text, participants_text = parts[:4]
    if not description:
        await message.answer("Укажите описание расхода")
        return

    try:
        amount = parse_amount(amount_text)
        if is_exact_shares(participants_text):
            by_initials = parse_exact_shares(participants_text)
        else:
            by_initials = split_amount(amount, parse_initials_list(participants_text))
        date = datetime.now(timezone.utc)
        if len(parts) > 4 and parts[4]:
            date = parse_ledger_date(parts[4], settings.zoneinfo)

        payer = await resolve_user(repo, payer_initials)
        shares = {}
        for initials, share in by_initials.items():
            user = await resolve_user(repo, initials)
            shares[user.id] = share

        expense, participants = await repo.create_expense(
            description=description,
            amount=amount,
            payer_id=payer.id,
            date=date,
            participants=shares,
        )
    except InvalidAmountError as exc:
        log.info("expense.rejected", reason=exc.reason)
        await message.answer(f"❌ Некорректная сумма: {exc.reason}")
        return
    except UnknownUserError as exc:
        await message.answer(f"❌ {exc}")
        return
    except ValueError as exc:
        await message.answer(f"❌ {exc}")
        return

    log.info("expense.created", expense_id=str(expense.id), participants=len(participants))
    shares_text = ", ".join(
        f"{initials} {format_amount(share)}" for initials, share in by_initials.items()
    )
    await message.answer(
        f"✅ Расход добавлен: <b>{expense.description}</b>\n"
        f"Платил {payer.name}: {settings.currency_symbol}{format_amount(expense.amount)}\n"
        f"Доли: {shares_text}"
    )


@expenses_router.message(Command("expenses"))
async def cmd_expenses(message: Message) -> None:
    await message.answer(await expenses_text())


@expenses_router.message(Command("delexpense"))
async def cmd_delexpense(message: Message) -> None:
    """Удалить расход вместе с долями участников: /delexpense <id>"""
    raw = command_args(message)
    try:
        expense_id = UUID(raw)
    except ValueError:
        await message.answer("Использование: /delexpense <id расхода из /expenses>")
        return

    repo = get_global_repository()
    expense = await repo.get_expense(expense_id)
    if expense is None or not await repo.delete_expense(expense_id):
        await message.answer("Расход не найден")
        return
    log.info("expense.deleted", expense_id=str(expense_id))
    await message.answer(f"🗑 Расход удалён: {expense['description']}")


@expenses_router.callback_query(lambda c: c.data == MENU_EXPENSES)
async def cb_expenses(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await expenses_text(), reply_markup=back_keyboard())
    await callback.answer()
