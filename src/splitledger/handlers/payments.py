from __future__ import annotations

from uuid import UUID

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from splitledger.config import get_settings
from splitledger.db.repo import get_global_repository
from splitledger.handlers.common import UnknownUserError, command_args, resolve_user
from splitledger.keyboards import MENU_PAYMENTS, back_keyboard
from splitledger.logging import get_logger
from splitledger.services.amounts import InvalidAmountError, format_amount
from splitledger.services.render import format_payments
from splitledger.utils.parse import parse_amount

payments_router = Router()
log = get_logger(__name__)


async def payments_text() -> str:
    settings = get_settings()
    rows = await get_global_repository().list_payments()
    return format_payments(rows, settings.zoneinfo, settings.currency_symbol)


@payments_router.message(Command("pay"))
async def cmd_pay(message: Message) -> None:
    """Записать платёж: /pay <кто> <кому> <сумма> [комментарий]"""
    repo = get_global_repository()
    parts = command_args(message).split(maxsplit=3)
    if len(parts) < 3:
        await message.answer("Использование: /pay <кто> <кому> <сумма> [комментарий]")
        return

    from_initials, to_initials, amount_text = parts[:3]
    description = parts[3] if len(parts) > 3 else None

    try:
        amount = parse_amount(amount_text)
        debtor = await resolve_user(repo, from_initials)
        creditor = await resolve_user(repo, to_initials)
        payment = await repo.create_payment(debtor.id, creditor.id, amount, description)
    except InvalidAmountError as exc:
        log.info("payment.rejected", reason=exc.reason)
        await message.answer(f"❌ Некорректная сумма: {exc.reason}")
        return
    except UnknownUserError as exc:
        await message.answer(f"❌ {exc}")
        return
    except ValueError as exc:
        await message.answer(f"❌ {exc}")
        return

    log.info("payment.created", payment_id=str(payment.id))
    settings = get_settings()
    await message.answer(
        f"✅ Платёж записан: {debtor.name} → {creditor.name} "
        f"{settings.currency_symbol}{format_amount(payment.amount)}\n"
        "Посмотреть, что осталось: /debts"
    )


@payments_router.message(Command("payments"))
async def cmd_payments(message: Message) -> None:
    await message.answer(await payments_text())


@payments_router.message(Command("delpayment"))
async def cmd_delpayment(message: Message) -> None:
    raw = command_args(message)
    try:
        payment_id = UUID(raw)
    except ValueError:
        await message.answer("Использование: /delpayment <id платежа из /payments>")
        return

    deleted = await get_global_repository().delete_payment(payment_id)
    if not deleted:
        await message.answer("Платёж не найден")
        return
    log.info("payment.deleted", payment_id=str(payment_id))
    await message.answer("🗑 Платёж удалён")


@payments_router.callback_query(lambda c: c.data == MENU_PAYMENTS)
async def cb_payments(callback: CallbackQuery) -> None:
    await callback.message.edit_text(await payments_text(), reply_markup=back_keyboard())
    await callback.answer()
