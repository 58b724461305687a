from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from splitledger.config import get_settings
from splitledger.db.models import User
from splitledger.db.repo import LedgerRepository
from splitledger.handlers.common import UnknownUserError, command_args, resolve_user
from splitledger.handlers.expenses import cmd_addexpense, cmd_delexpense, cmd_expenses
from splitledger.handlers.ledger import cmd_adduser
from splitledger.handlers.payments import cmd_pay


class StubRepo:
    def __init__(self, users: list[User]) -> None:
        self.users = {user.initials: user for user in users}

    async def get_user_by_initials(self, initials: str) -> User | None:
        return self.users.get(initials.strip().upper())


class DummyDB:
    def __init__(self) -> None:
        self.rows: list[dict] = []
        self.row: dict | None = None
        self.status = "OK"
        self.queries: list[tuple[str, tuple]] = []
        self.transactions = 0

    async def fetch(self, query: str, *args):
        self.queries.append((query, args))
        return self.rows

    async def fetchrow(self, query: str, *args):
        self.queries.append((query, args))
        return self.row

    async def execute(self, query: str, *args):
        self.queries.append((query, args))
        return self.status

    async def insert_with_children(self, parent_query, parent_args, child_query, child_args):
        self.transactions += 1
        description, amount, payer_id, date = tuple(parent_args)
        parent = {
            "id": uuid4(),
            "description": description,
            "amount": amount,
            "payer_id": payer_id,
            "date": date,
            "created_at": None,
        }
        children = [
            {"id": uuid4(), "expense_id": parent["id"], "user_id": user_id, "amount": share}
            for user_id, share in child_args
        ]
        return parent, children


class StubLedger(LedgerRepository):
    """Настоящий репозиторий с участниками в памяти."""

    def __init__(self, users: list[User]) -> None:
        super().__init__(DummyDB())  # type: ignore[arg-type]
        self.users = {user.initials: user for user in users}

    async def get_user_by_initials(self, initials: str) -> User | None:
        return self.users.get(initials.strip().upper())


class StubMessage:
    def __init__(self, text: str) -> None:
        self.text = text
        self.replies: list[str] = []

    async def answer(self, text: str, **kwargs) -> None:
        self.replies.append(text)


@pytest.fixture
def ledger(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/splitledger")
    get_settings.cache_clear()

    repo = StubLedger([
        User(id=uuid4(), name="Juan García", initials="JG"),
        User(id=uuid4(), name="María López", initials="ML"),
    ])
    monkeypatch.setattr("splitledger.db.repo._global_repo", repo)
    yield repo
    get_settings.cache_clear()


def test_command_args():
    assert command_args(SimpleNamespace(text="/pay JG ML 10 такси")) == "JG ML 10 такси"
    assert command_args(SimpleNamespace(text="/debts")) == ""
    assert command_args(SimpleNamespace(text=None)) == ""


@pytest.mark.asyncio
async def test_resolve_user():
    ana = User(id=uuid4(), name="Ana", initials="AM")
    repo = StubRepo([ana])

    assert await resolve_user(repo, "am") is ana  # type: ignore[arg-type]
    with pytest.raises(UnknownUserError) as exc_info:
        await resolve_user(repo, "zz")  # type: ignore[arg-type]
    assert exc_info.value.initials == "ZZ"


# --- /pay ---


@pytest.mark.asyncio
async def test_pay_rejects_zero_amount(ledger):
    message = StubMessage("/pay JG ML 0")

    await cmd_pay(message)  # type: ignore[arg-type]

    assert message.replies == ["❌ Некорректная сумма: amount must be positive"]
    assert ledger.db.queries == []


@pytest.mark.asyncio
async def test_pay_to_self_is_rejected(ledger):
    message = StubMessage("/pay JG JG 10")

    await cmd_pay(message)  # type: ignore[arg-type]

    assert message.replies == ["❌ Нельзя заплатить самому себе"]
    assert ledger.db.queries == []


@pytest.mark.asyncio
async def test_pay_unknown_payer(ledger):
    message = StubMessage("/pay ZZ ML 10")

    await cmd_pay(message)  # type: ignore[arg-type]

    assert message.replies == ["❌ Участник ZZ не найден"]
    assert ledger.db.queries == []


@pytest.mark.asyncio
async def test_pay_usage_when_arguments_missing(ledger):
    message = StubMessage("/pay JG ML")

    await cmd_pay(message)  # type: ignore[arg-type]

    assert message.replies[0].startswith("Использование: /pay")


@pytest.mark.asyncio
async def test_pay_records_payment(ledger):
    juan, maria = ledger.users["JG"], ledger.users["ML"]
    ledger.db.row = {
        "id": uuid4(),
        "from_user_id": juan.id,
        "to_user_id": maria.id,
        "amount": Decimal("12.50"),
        "description": "такси",
        "payment_date": datetime(2026, 10, 1, tzinfo=timezone.utc),
        "created_at": datetime(2026, 10, 1, tzinfo=timezone.utc),
    }
    message = StubMessage("/pay jg ml 12,50 такси")

    await cmd_pay(message)  # type: ignore[arg-type]

    assert message.replies[0].startswith("✅ Платёж записан: Juan García → María López $12.50")
    _, args = ledger.db.queries[0]
    assert args[:4] == (juan.id, maria.id, Decimal("12.50"), "такси")


# --- /addexpense ---


@pytest.mark.asyncio
async def test_addexpense_rejects_zero_amount(ledger):
    message = StubMessage("/addexpense JG | Ужин | 0 | JG ML")

    await cmd_addexpense(message)  # type: ignore[arg-type]

    assert message.replies == ["❌ Некорректная сумма: amount must be positive"]
    assert ledger.db.transactions == 0


@pytest.mark.asyncio
async def test_addexpense_unknown_payer(ledger):
    message = StubMessage("/addexpense ZZ | Ужин | 30 | JG ML")

    await cmd_addexpense(message)  # type: ignore[arg-type]

    assert message.replies == ["❌ Участник ZZ не найден"]
    assert ledger.db.transactions == 0


@pytest.mark.asyncio
async def test_addexpense_rejects_shares_not_matching_total(ledger):
    message = StubMessage("/addexpense JG | Ужин | 30 | JG=10 ML=5")

    await cmd_addexpense(message)  # type: ignore[arg-type]

    assert message.replies[0].startswith("❌ Некорректная сумма: participant shares must sum to")
    assert ledger.db.transactions == 0


@pytest.mark.asyncio
async def test_addexpense_splits_equally(ledger):
    message = StubMessage("/addexpense JG | Ужин | 10 | JG ML")

    await cmd_addexpense(message)  # type: ignore[arg-type]

    assert ledger.db.transactions == 1
    reply = message.replies[0]
    assert reply.startswith("✅ Расход добавлен: <b>Ужин</b>")
    assert "Платил Juan García: $10.00" in reply
    assert "Доли: JG 5.00, ML 5.00" in reply


# --- /expenses, /delexpense ---


@pytest.mark.asyncio
async def test_expenses_lists_recent(ledger):
    expense_id = uuid4()
    ledger.db.rows = [
        {
            "id": expense_id,
            "description": "Ужин",
            "amount": Decimal("30.00"),
            "date": datetime(2026, 10, 1, 18, 0, tzinfo=timezone.utc),
            "payer_initials": "JG",
            "participants": 3,
        }
    ]
    message = StubMessage("/expenses")

    await cmd_expenses(message)  # type: ignore[arg-type]

    assert "Ужин: $30.00, платил JG" in message.replies[0]
    assert str(expense_id) in message.replies[0]


@pytest.mark.asyncio
async def test_delexpense_requires_id(ledger):
    message = StubMessage("/delexpense вчерашний")

    await cmd_delexpense(message)  # type: ignore[arg-type]

    assert message.replies == ["Использование: /delexpense <id расхода из /expenses>"]
    assert ledger.db.queries == []


@pytest.mark.asyncio
async def test_delexpense_missing(ledger):
    message = StubMessage(f"/delexpense {uuid4()}")

    await cmd_delexpense(message)  # type: ignore[arg-type]

    assert message.replies == ["Расход не найден"]
    assert not [q for q, _ in ledger.db.queries if q.startswith("DELETE")]


@pytest.mark.asyncio
async def test_delexpense_removes_expense(ledger):
    expense_id = uuid4()
    ledger.db.row = {"id": expense_id, "description": "Ужин"}
    ledger.db.status = "DELETE 1"
    message = StubMessage(f"/delexpense {expense_id}")

    await cmd_delexpense(message)  # type: ignore[arg-type]

    assert message.replies == ["🗑 Расход удалён: Ужин"]
    assert ledger.db.queries[-1] == ("DELETE FROM expenses WHERE id = $1", (expense_id,))


# --- /adduser ---


@pytest.mark.asyncio
@pytest.mark.parametrize("initials", ["J2", "J G", "ABCD"])
async def test_adduser_rejects_malformed_initials(ledger, initials):
    message = StubMessage(f"/adduser Jorge | {initials}")

    await cmd_adduser(message)  # type: ignore[arg-type]

    assert message.replies[0].startswith("❌ Инициалы должны состоять из 1-3 букв")
    assert ledger.db.queries == []


@pytest.mark.asyncio
async def test_adduser_rejects_taken_initials(ledger):
    message = StubMessage("/adduser Jorge | jg")

    await cmd_adduser(message)  # type: ignore[arg-type]

    assert message.replies == ["Инициалы JG уже заняты"]
    assert ledger.db.queries == []


@pytest.mark.asyncio
async def test_adduser_creates_user(ledger):
    ledger.db.row = {"id": uuid4(), "name": "Carlos Ruiz", "initials": "CR", "color": "#10B981", "active": True}
    message = StubMessage("/adduser Carlos Ruiz | cr | #10B981")

    await cmd_adduser(message)  # type: ignore[arg-type]

    assert message.replies[0].startswith("✅ Участник добавлен:")
    _, args = ledger.db.queries[0]
    assert args == ("Carlos Ruiz", "CR", "#10B981")
