from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from splitledger.config import get_settings
from splitledger.db.repo import LedgerRepository
from splitledger.logging import get_logger
from splitledger.services.amounts import InvalidAmountError
from splitledger.services.ledger import IntegrityReport, check_integrity


async def setup_scheduler(repo: LedgerRepository) -> AsyncIOScheduler:
    settings = get_settings()

    scheduler = AsyncIOScheduler(timezone=settings.tz)
    scheduler.add_job(
        _integrity_job,
        IntervalTrigger(minutes=settings.audit_interval_minutes),
        kwargs={"repo": repo},
    )
    scheduler.start()
    return scheduler


async def _integrity_job(repo: LedgerRepository) -> IntegrityReport | None:
    log = get_logger(__name__)
    settings = get_settings()
    try:
        return await check_integrity(repo, settings.ledger_epsilon)
    except InvalidAmountError as exc:
        log.error("ledger.integrity.invalid_amount", field=exc.field, reason=exc.reason)
        return None
