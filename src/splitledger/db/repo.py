from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Hashable, Iterable, Mapping, Optional
from uuid import UUID

import asyncpg

from splitledger.db.models import DEFAULT_COLOR, Expense, ExpenseParticipant, Payment, User
from splitledger.logging import get_logger, sql_logger
from splitledger.services.amounts import to_amount, to_positive_amount
from splitledger.services.balances import UserSums
from splitledger.services.split import validate_shares

DEFAULT_USERS = (
    ("Juan García", "JG", "#3B82F6"),
    ("María López", "ML", "#8B5CF6"),
    ("Carlos Ruiz", "CR", "#10B981"),
    ("Ana Martínez", "AM", "#EF4444"),
)


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg ожидает схему postgresql/postgres, без "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetch", query=query, args=args)
        return await self._pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query, args=args)
        return await self._pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchval", query=query, args=args)
        return await self._pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query, args=args)
        return await self._pool.execute(query, *args)

    async def insert_with_children(
        self,
        parent_query: str,
        parent_args: Iterable[Any],
        child_query: str,
        child_args: Iterable[Iterable[Any]],
    ) -> tuple[asyncpg.Record, list[asyncpg.Record]]:
        """Вставка родительской строки и дочерних строк в одной транзакции.

        В ``child_query`` первым параметром ($1) передаётся id родителя.
        """
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.transaction", query=parent_query, children=child_query)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                parent = await conn.fetchrow(parent_query, *parent_args)
                assert parent is not None
                children = []
                for args in child_args:
                    child = await conn.fetchrow(child_query, parent["id"], *args)
                    assert child is not None
                    children.append(child)
        return parent, children

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


class LedgerRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    # --- пользователи ---

    async def list_users(self, include_inactive: bool = True) -> list[User]:
        if include_inactive:
            rows = await self.db.fetch("SELECT * FROM users ORDER BY name, id")
        else:
            rows = await self.db.fetch("SELECT * FROM users WHERE active = true ORDER BY name, id")
        return [User.from_record(row) for row in rows]

    async def get_user_by_initials(self, initials: str) -> User | None:
        row = await self.db.fetchrow(
            "SELECT * FROM users WHERE upper(initials) = upper($1) ORDER BY active DESC, name LIMIT 1",
            initials.strip(),
        )
        return User.from_record(row) if row else None

    async def create_user(self, name: str, initials: str, color: Optional[str] = None) -> User:
        row = await self.db.fetchrow(
            """
            INSERT INTO users (name, initials, color)
            VALUES ($1, $2, $3)
            RETURNING *
            """,
            name.strip(),
            initials.strip().upper(),
            color or DEFAULT_COLOR,
        )
        assert row is not None
        return User.from_record(row)

    async def set_user_active(self, user_id: UUID, active: bool) -> None:
        await self.db.execute("UPDATE users SET active = $1 WHERE id = $2", active, user_id)

    async def initialize_default_users(self) -> list[User]:
        count = await self.db.fetchval("SELECT COUNT(*) FROM users")
        if not count:
            for name, initials, color in DEFAULT_USERS:
                await self.create_user(name, initials, color)
        return await self.list_users()

    # --- агрегаты для расчёта балансов ---

    async def sum_expense_amounts_paid_by(self, user_id: UUID) -> Decimal:
        value = await self.db.fetchval(
            "SELECT COALESCE(SUM(amount), 0) FROM expenses WHERE payer_id = $1",
            user_id,
        )
        return to_amount(value, field="paid")

    async def sum_participant_share_amounts_owed_by(self, user_id: UUID) -> Decimal:
        value = await self.db.fetchval(
            "SELECT COALESCE(SUM(amount), 0) FROM expense_participants WHERE user_id = $1",
            user_id,
        )
        return to_amount(value, field="owed")

    async def sum_payment_amounts_sent_by(self, user_id: UUID) -> Decimal:
        value = await self.db.fetchval(
            "SELECT COALESCE(SUM(amount), 0) FROM payments WHERE from_user_id = $1",
            user_id,
        )
        return to_amount(value, field="payments_sent")

    async def sum_payment_amounts_received_by(self, user_id: UUID) -> Decimal:
        value = await self.db.fetchval(
            "SELECT COALESCE(SUM(amount), 0) FROM payments WHERE to_user_id = $1",
            user_id,
        )
        return to_amount(value, field="payments_received")

    async def fetch_user_sums(self) -> dict[Hashable, UserSums]:
        # Подзапросы вместо JOIN: соединение расходов и долей размножает строки
        rows = await self.db.fetch(
            """
            SELECT u.id,
                   COALESCE((SELECT SUM(e.amount) FROM expenses e WHERE e.payer_id = u.id), 0) AS paid,
                   COALESCE((SELECT SUM(ep.amount) FROM expense_participants ep WHERE ep.user_id = u.id), 0) AS owed,
                   COALESCE((SELECT SUM(p.amount) FROM payments p WHERE p.from_user_id = u.id), 0) AS payments_sent,
                   COALESCE((SELECT SUM(p.amount) FROM payments p WHERE p.to_user_id = u.id), 0) AS payments_received
            FROM users u
            ORDER BY u.name, u.id
            """
        )
        return {row["id"]: UserSums.from_record(row) for row in rows}

    # --- расходы ---

    async def create_expense(
        self,
        description: str,
        amount: Decimal,
        payer_id: UUID,
        date: datetime,
        participants: Mapping[UUID, Decimal],
    ) -> tuple[Expense, list[ExpenseParticipant]]:
        amount = to_positive_amount(amount, field="amount")
        shares = validate_shares(amount, participants)

        parent, children = await self.db.insert_with_children(
            """
            INSERT INTO expenses (description, amount, payer_id, date)
            VALUES ($1, $2, $3, $4)
            RETURNING *
            """,
            (description, amount, payer_id, date),
            """
            INSERT INTO expense_participants (expense_id, user_id, amount)
            VALUES ($1, $2, $3)
            RETURNING *
            """,
            list(shares.items()),
        )
        expense = Expense(
            id=parent["id"],
            description=parent["description"],
            amount=parent["amount"],
            payer_id=parent["payer_id"],
            date=parent["date"],
            created_at=parent["created_at"],
        )
        return expense, [
            ExpenseParticipant(
                id=child["id"],
                expense_id=child["expense_id"],
                user_id=child["user_id"],
                amount=child["amount"],
            )
            for child in children
        ]

    async def list_expenses(self, limit: int = 20) -> list[asyncpg.Record]:
        return await self.db.fetch(
            """
            SELECT e.*,
                   u.name AS payer_name,
                   u.initials AS payer_initials,
                   (SELECT COUNT(*) FROM expense_participants ep WHERE ep.expense_id = e.id) AS participants
            FROM expenses e
            JOIN users u ON u.id = e.payer_id
            ORDER BY e.date DESC, e.created_at DESC
            LIMIT $1
            """,
            limit,
        )

    async def get_expense(self, expense_id: UUID) -> asyncpg.Record | None:
        return await self.db.fetchrow("SELECT * FROM expenses WHERE id = $1", expense_id)

    async def delete_expense(self, expense_id: UUID) -> bool:
        # доли участников удаляются каскадом
        status = await self.db.execute("DELETE FROM expenses WHERE id = $1", expense_id)
        return status.endswith(" 1")

    # --- платежи ---

    async def create_payment(
        self,
        from_user_id: UUID,
        to_user_id: UUID,
        amount: Decimal,
        description: Optional[str] = None,
        payment_date: Optional[datetime] = None,
    ) -> Payment:
        if from_user_id == to_user_id:
            raise ValueError("Нельзя заплатить самому себе")
        amount = to_positive_amount(amount, field="amount")

        row = await self.db.fetchrow(
            """
            INSERT INTO payments (from_user_id, to_user_id, amount, description, payment_date)
            VALUES ($1, $2, $3, $4, COALESCE($5, NOW()))
            RETURNING *
            """,
            from_user_id,
            to_user_id,
            amount,
            description,
            payment_date,
        )
        assert row is not None
        return Payment(
            id=row["id"],
            from_user_id=row["from_user_id"],
            to_user_id=row["to_user_id"],
            amount=row["amount"],
            payment_date=row["payment_date"],
            description=row["description"],
            created_at=row["created_at"],
        )

    async def list_payments(self, limit: int = 50) -> list[asyncpg.Record]:
        return await self.db.fetch(
            """
            SELECT p.*,
                   fu.name AS from_name,
                   fu.initials AS from_initials,
                   tu.name AS to_name,
                   tu.initials AS to_initials
            FROM payments p
            JOIN users fu ON fu.id = p.from_user_id
            JOIN users tu ON tu.id = p.to_user_id
            ORDER BY p.payment_date DESC
            LIMIT $1
            """,
            limit,
        )

    async def delete_payment(self, payment_id: UUID) -> bool:
        status = await self.db.execute("DELETE FROM payments WHERE id = $1", payment_id)
        return status.endswith(" 1")

    # --- статистика ---

    async def get_total_spent(self) -> Decimal:
        value = await self.db.fetchval("SELECT COALESCE(SUM(amount), 0) FROM expenses")
        return to_amount(value, field="total_spent")

    async def get_monthly_expense_count(self, year: int, month: int) -> int:
        value = await self.db.fetchval(
            """
            SELECT COUNT(*) FROM expenses
            WHERE date >= make_date($1, $2, 1)
              AND date < make_date($1, $2, 1) + INTERVAL '1 month'
            """,
            year,
            month,
        )
        return int(value or 0)


_global_repo: LedgerRepository | None = None


def set_global_repository(repo: LedgerRepository) -> None:
    global _global_repo
    _global_repo = repo


def get_global_repository() -> LedgerRepository:
    if _global_repo is None:
        raise RuntimeError("Репозиторий не инициализирован")
    return _global_repo
