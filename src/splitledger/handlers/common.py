from __future__ import annotations

from aiogram.types import Message

from splitledger.db.models import User
from splitledger.db.repo import LedgerRepository


class UnknownUserError(LookupError):
    def __init__(self, initials: str) -> None:
        self.initials = initials
        super().__init__(f"Участник {initials} не найден")


def command_args(message: Message) -> str:
    """Текст после команды: «/pay JG ML 10» -> «JG ML 10»."""
    if not message.text:
        return ""
    parts = message.text.split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


async def resolve_user(repo: LedgerRepository, initials: str) -> User:
    user = await repo.get_user_by_initials(initials)
    if user is None:
        raise UnknownUserError(initials.upper())
    return user
