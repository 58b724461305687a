from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, Message

from splitledger.keyboards import MENU_HELP, MENU_MAIN, back_keyboard, main_menu_keyboard

basic_router = Router()

HELP_TEXT = (
    "<b>📖 Справка по командам</b>\n\n"
    "<b>Расчёты:</b>\n"
    "/balances - балансы участников\n"
    "/debts - кто кому должен (минимум переводов)\n"
    "/pairwise - попарные долги в порядке участников\n"
    "/stats - общая сводка\n\n"
    "<b>Расходы и платежи:</b>\n"
    "/addexpense - добавить расход\n"
    "/expenses - последние расходы\n"
    "/delexpense - удалить расход\n"
    "/pay - записать платёж\n"
    "/payments - история платежей\n"
    "/delpayment - удалить платёж\n\n"
    "<b>Участники:</b>\n"
    "/users - список участников\n"
    "/adduser - добавить участника\n"
    "/deactivate, /activate - выключить или вернуть участника\n\n"
    "<b>Формат команд:</b>\n"
    "• /addexpense [кто платил] | [описание] | [сумма] | JG ML CR\n"
    "• /addexpense [кто платил] | [описание] | [сумма] | JG=10 ML=5\n"
    "• /pay [кто] [кому] [сумма] [комментарий]\n"
    "• /adduser [имя] | [инициалы]\n"
)


def _greeting(first_name: str | None) -> str:
    return (
        f"👋 Привет, {first_name or 'друг'}!\n\n"
        "Я <b>SplitLedger</b> — веду общие расходы и подсказываю, кто кому сколько должен.\n\n"
        "Выбери действие:"
    )


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    user = message.from_user
    await message.answer(_greeting(user.first_name if user else None), reply_markup=main_menu_keyboard())


@basic_router.callback_query(lambda c: c.data == MENU_MAIN)
async def cb_main_menu(callback: CallbackQuery) -> None:
    """Возврат в главное меню"""
    user = callback.from_user
    await callback.message.edit_text(
        _greeting(user.first_name if user else None),
        reply_markup=main_menu_keyboard(),
    )
    await callback.answer()


@basic_router.callback_query(lambda c: c.data == MENU_HELP)
async def cb_help_menu(callback: CallbackQuery) -> None:
    await callback.message.edit_text(HELP_TEXT, reply_markup=back_keyboard())
    await callback.answer()


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT + "\nИспользуй /start чтобы вернуться в главное меню")
