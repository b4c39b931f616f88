"""Expiry sweeper: finalizes auctions whose live window has elapsed.

Runs as a background task inside the API process when SWEEPER_ENABLED is
set. Several API replicas may run it; a Redis lease (SET NX PX) lets only one
of them sweep per interval. The lease is left to expire rather than released
so a second replica cannot start a sweep right after the first one finishes.

Each auction is finalized in its own session and unit of work through
AuctionService.end_auction under the scheduler identity, so the sweeper
follows exactly the same locking and settlement path as a seller.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.ah_auction.application.service import AuctionService
from src.ah_auction.domain.constants import SCHEDULER_CALLER_ID
from src.ah_common.errors import (
    AlreadyFinalizedError,
    AppError,
    WinnerCannotPayError,
)

logger = logging.getLogger(__name__)

LEASE_KEY = "ah:sweeper:lease"


@dataclass
class SweepReport:
    skipped: bool = False
    expired: int = 0
    settled: int = 0
    already_finalized: int = 0
    winner_cannot_pay: int = 0
    failed: int = 0


class AuctionExpirySweeper:
    def __init__(
        self,
        service: AuctionService,
        session_factory: async_sessionmaker[AsyncSession],
        redis_getter: Callable[[], Awaitable[aioredis.Redis]],
        lease_seconds: float | None = None,
    ) -> None:
        self._service = service
        self._session_factory = session_factory
        self._redis_getter = redis_getter
        self._lease_ms = int(
            1000 * (settings.SWEEPER_LEASE_SECONDS if lease_seconds is None else lease_seconds)
        )
        self._token = uuid.uuid4().hex

    async def _acquire_lease(self) -> bool:
        redis = await self._redis_getter()
        return bool(await redis.set(LEASE_KEY, self._token, nx=True, px=self._lease_ms))

    async def sweep_once(self) -> SweepReport:
        if not await self._acquire_lease():
            logger.debug("Sweep skipped: lease held by another instance")
            return SweepReport(skipped=True)

        async with self._session_factory() as db:
            expired = await self._service.list_expired_ids(db)

        report = SweepReport(expired=len(expired))
        for auction_id in expired:
            async with self._session_factory() as db:
                try:
                    await self._service.end_auction(db, SCHEDULER_CALLER_ID, auction_id)
                    report.settled += 1
                except AlreadyFinalizedError:
                    # seller ended it between listing and locking
                    report.already_finalized += 1
                except WinnerCannotPayError as exc:
                    report.winner_cannot_pay += 1
                    logger.warning("Sweep: %s", exc.message)
                except AppError as exc:
                    report.failed += 1
                    logger.error(
                        "Sweep: auction %s not finalized: [%d] %s",
                        auction_id, exc.code, exc.message,
                    )
                except Exception:
                    # one broken auction must not starve the rest of the batch
                    report.failed += 1
                    logger.exception("Sweep: auction %s not finalized", auction_id)

        if expired:
            logger.info(
                "Sweep done: expired=%d settled=%d already=%d cannot_pay=%d failed=%d",
                report.expired, report.settled, report.already_finalized,
                report.winner_cannot_pay, report.failed,
            )
        return report

    async def run_forever(self, interval_seconds: float | None = None) -> None:
        interval = settings.SWEEPER_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        logger.info("Expiry sweeper started (interval=%.1fs)", interval)
        while True:
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Expiry sweep crashed; retrying next interval")
            await asyncio.sleep(interval)
