from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

MENU_BALANCES = "menu:balances"
MENU_DEBTS = "menu:debts"
MENU_PAIRWISE = "menu:pairwise"
MENU_PAYMENTS = "menu:payments"
MENU_EXPENSES = "menu:expenses"
MENU_STATS = "menu:stats"
MENU_USERS = "menu:users"
MENU_HELP = "menu:help"
MENU_MAIN = "menu:main"


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text="⚖️ Балансы", callback_data=MENU_BALANCES),
            InlineKeyboardButton(text="💸 Долги", callback_data=MENU_DEBTS),
        ],
        [
            InlineKeyboardButton(text="🔗 Попарно", callback_data=MENU_PAIRWISE),
            InlineKeyboardButton(text="🧾 Платежи", callback_data=MENU_PAYMENTS),
        ],
        [
            InlineKeyboardButton(text="📊 Сводка", callback_data=MENU_STATS),
            InlineKeyboardButton(text="👥 Участники", callback_data=MENU_USERS),
        ],
        [
            InlineKeyboardButton(text="🛒 Расходы", callback_data=MENU_EXPENSES),
            InlineKeyboardButton(text="ℹ️ Помощь", callback_data=MENU_HELP),
        ],
    ])


def back_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="◀️ Назад в меню", callback_data=MENU_MAIN)]
    ])


def debts_keyboard(pairwise: bool = False) -> InlineKeyboardMarkup:
    switch = (
        InlineKeyboardButton(text="💸 Упрощённо", callback_data=MENU_DEBTS)
        if pairwise
        else InlineKeyboardButton(text="🔗 Попарно", callback_data=MENU_PAIRWISE)
    )
    return InlineKeyboardMarkup(inline_keyboard=[
        [switch],
        [InlineKeyboardButton(text="◀️ Назад в меню", callback_data=MENU_MAIN)],
    ])
