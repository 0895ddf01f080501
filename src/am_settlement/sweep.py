"""Expired-auction sweep entry point for an external scheduler.

Run with: python -m src.am_settlement.sweep [--limit N]

Safe to invoke repeatedly: auctions already closed by a concurrent close or
buy-now bid are skipped.
"""

import argparse
import asyncio
import logging

from config.settings import settings
from src.am_common.database import async_session_factory, engine
from src.am_common.redis_client import close_redis
from src.am_settlement.application.service import SettlementService
from src.am_settlement.domain.models import SweepReport

logger = logging.getLogger(__name__)


async def run_sweep(limit: int | None = None) -> SweepReport:
    service = SettlementService()
    try:
        async with async_session_factory() as db:
            return await service.close_expired(db, limit)
    finally:
        await close_redis()
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Close auctions past their end time.")
    parser.add_argument("--limit", type=int, default=None, help="max auctions per run")
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    report = asyncio.run(run_sweep(args.limit))
    logger.info("closed=%s skipped=%s failed=%s", report.closed, report.skipped, report.failed)
    if report.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
