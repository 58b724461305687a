from __future__ import annotations

import asyncpg
from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from splitledger.config import get_settings
from splitledger.db.repo import get_global_repository
from splitledger.handlers.common import UnknownUserError, command_args, resolve_user
from splitledger.keyboards import (
    MENU_BALANCES,
    MENU_DEBTS,
    MENU_PAIRWISE,
    MENU_STATS,
    MENU_USERS,
    back_keyboard,
    debts_keyboard,
)
from splitledger.logging import get_logger
from splitledger.services.amounts import InvalidAmountError
from splitledger.services.ledger import get_balances, get_debt_summary, get_pairwise_summary, get_stats
from splitledger.services.render import (
    format_balances,
    format_debt_report,
    format_pairwise,
    format_stats,
    format_users,
    user_label,
)
from splitledger.utils.parse import parse_initials

ledger_router = Router()
log = get_logger(__name__)

INVALID_LEDGER_TEXT = (
    "❌ В журнале есть некорректная сумма, расчёт невозможен.\n"
    "Исправьте данные и попробуйте снова."
)


async def balances_text() -> str:
    settings = get_settings()
    try:
        balances = await get_balances(get_global_repository())
    except InvalidAmountError as exc:
        log.warning("ledger.invalid_amount", error=str(exc))
        return INVALID_LEDGER_TEXT
    return format_balances(balances, settings.currency_symbol)


async def debts_text() -> str:
    settings = get_settings()
    try:
        report = await get_debt_summary(get_global_repository(), settings.ledger_epsilon)
    except InvalidAmountError as exc:
        log.warning("ledger.invalid_amount", error=str(exc))
        return INVALID_LEDGER_TEXT
    if report.warning:
        log.warning("ledger.debts.residual", residual=str(report.residual))
    return format_debt_report(report, settings.currency_symbol)


async def pairwise_text() -> str:
    settings = get_settings()
    try:
        debts = await get_pairwise_summary(get_global_repository())
    except InvalidAmountError as exc:
        log.warning("ledger.invalid_amount", error=str(exc))
        return INVALID_LEDGER_TEXT
    return format_pairwise(debts, settings.currency_symbol)


async def stats_text() -> str:
    settings = get_settings()
    stats = await get_stats(get_global_repository())
    return format_stats(stats, settings.currency_symbol)


async def users_text() -> str:
    users = await get_global_repository().initialize_default_users()
    return format_users(users)


@ledger_router.message(Command("balances"))
async def cmd_balances(message: Message) -> None:
    await message.answer(await balances_text())


@ledger_router.message(Command("debts"))
async def cmd_debts(message: Message) -> None:
    await message.answer(await debts_text(), reply_markup=debts_keyboard(pairwise=False))


@ledger_router.message(Command("pairwise"))
async def cmd_pairwise(message: Message) -> None:
    await message.answer(await pairwise_text(), reply_markup=debts_keyboard(pairwise=True))


@ledger_router.message(Command("stats"))
async def cmd_stats(message: Message) -> None:
    await message.answer(await stats_text())


@ledger_router.message(Command("users"))
async def cmd_users(message: Message) -> None:
    await message.answer(await users_text())


@ledger_router.message(Command("adduser"))
async def cmd_adduser(message: Message) -> None:
    parts = [part.strip() for part in command_args(message).split("|")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        await message.answer("Использование: /adduser <имя> | <инициалы> [| #цвет]")
        return

    name = parts[0]
    try:
        initials = parse_initials(parts[1])
    except ValueError as exc:
        await message.answer(f"❌ {exc}")
        return
    color = parts[2] if len(parts) > 2 and parts[2] else None

    repo = get_global_repository()
    if await repo.get_user_by_initials(initials):
        await message.answer(f"Инициалы {initials} уже заняты")
        return

    try:
        user = await repo.create_user(name, initials, color)
    except asyncpg.UniqueViolationError:
        await message.answer(f"Инициалы {initials} уже заняты")
        return
    log.info("user.created", user_id=str(user.id))
    await message.answer(f"✅ Участник добавлен: {user_label(user)}")


async def _set_active(message: Message, active: bool) -> None:
    initials = command_args(message)
    if not initials:
        command = "/activate" if active else "/deactivate"
        await message.answer(f"Использование: {command} <инициалы>")
        return

    repo = get_global_repository()
    try:
        user = await resolve_user(repo, initials)
    except UnknownUserError as exc:
        await message.answer(f"❌ {exc}")
        return

    await repo.set_user_active(user.id, active)
    log.info("user.active", user_id=str(user.id), active=active)
    state = "снова активен" if active else "деактивирован"
    await message.answer(f"Участник {user_label(user)} {state}")


@ledger_router.message(Command("deactivate"))
async def cmd_deactivate(message: Message) -> None:
    await _set_active(message, False)


@ledger_router.message(Command("activate"))
async def cmd_activate(message: Message) -> None:
    await _set_active(message, True)


@ledger_router.callback_query(lambda c: c.data == MENU_BALANCES)
async def cb_balances(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await balances_text(), reply_markup=back_keyboard())
    await callback.answer()


@ledger_router.callback_query(lambda c: c.data == MENU_DEBTS)
async def cb_debts(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await debts_text(), reply_markup=debts_keyboard(pairwise=False))
    await callback.answer()


@ledger_router.callback_query(lambda c: c.data == MENU_PAIRWISE)
async def cb_pairwise(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await pairwise_text(), reply_markup=debts_keyboard(pairwise=True))
    await callback.answer()


@ledger_router.callback_query(lambda c: c.data == MENU_STATS)
async def cb_stats(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await stats_text(), reply_markup=back_keyboard())
    await callback.answer()


@ledger_router.callback_query(lambda c: c.data == MENU_USERS)
async def cb_users(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await users_text(), reply_markup=back_keyboard())
    await callback.answer()
