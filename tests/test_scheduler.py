from decimal import Decimal
from uuid import uuid4

import pytest

from splitledger.config import get_settings
from splitledger.db.models import User
from splitledger.scheduler import _integrity_job
from splitledger.services.balances import UserSums


class StubRepo:
    def __init__(self, sums: dict) -> None:
        self.user = User(id=uuid4(), name="Ana", initials="AM")
        self.sums = {self.user.id: sums}

    async def list_users(self, include_inactive: bool = True) -> list[User]:
        return [self.user]

    async def fetch_user_sums(self) -> dict:
        return self.sums


@pytest.fixture(autouse=True)
def env(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/splitledger")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_integrity_job_reports_imbalance():
    report = await _integrity_job(StubRepo(UserSums(paid=Decimal("10"))))  # type: ignore[arg-type]
    assert report is not None
    assert not report.ok
    assert report.total_balance == Decimal("10")


@pytest.mark.asyncio
async def test_integrity_job_logs_invalid_amounts():
    report = await _integrity_job(StubRepo(UserSums(paid=Decimal("-10"))))  # type: ignore[arg-type]
    assert report is None
