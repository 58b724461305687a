from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional
from uuid import UUID

DEFAULT_COLOR = "#3B82F6"


@dataclass(slots=True)
class User:
    id: UUID
    name: str
    initials: str
    color: str = DEFAULT_COLOR
    active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            id=row["id"],
            name=row["name"],
            initials=row["initials"],
            color=row.get("color") or DEFAULT_COLOR,
            active=row.get("active", True),
            created_at=row.get("created_at"),
        )


@dataclass(slots=True)
class Expense:
    id: UUID
    description: str
    amount: Decimal
    payer_id: UUID
    date: datetime
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class ExpenseParticipant:
    id: UUID
    expense_id: UUID
    user_id: UUID
    amount: Decimal


@dataclass(slots=True)
class Payment:
    id: UUID
    from_user_id: UUID
    to_user_id: UUID
    amount: Decimal
    payment_date: datetime
    description: Optional[str] = None
    created_at: Optional[datetime] = None
