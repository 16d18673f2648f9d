import asyncio
from typing import Optional

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger
from common.db.session import dispose_engines
from packages.billing.models.domain.reconciliation import SweepSummary
from packages.billing.services.reconciliation_service import ReconciliationService

logger = get_logger(__name__)


class ExpirySweepWorker:
    """Runs the expiry sweep on a fixed interval, or once with ``run_once``."""

    def __init__(
        self,
        interval_seconds: Optional[int] = None,
        run_once: bool = False,
        reconciliation_service: Optional[ReconciliationService] = None,
    ):
        self.interval_seconds = interval_seconds or settings.expiry_sweep_interval_seconds
        self.run_once = run_once
        self.reconciliation_service = reconciliation_service
        self.running = False
        self._stopped = asyncio.Event()

    def _service(self) -> ReconciliationService:
        if self.reconciliation_service is None:
            self.reconciliation_service = ReconciliationService()
        return self.reconciliation_service

    async def sweep(self) -> Optional[SweepSummary]:
        """One pass. Errors are logged so the loop survives a bad pass."""
        try:
            return await self._service().run_expiry_sweep()
        except Exception as e:
            logger.error(f"Expiry sweep pass failed: {e}", exc_info=True)
            return None

    async def start(self):
        if self.running:
            logger.warning("Expiry sweep worker is already running")
            return

        self.running = True
        self._stopped.clear()
        logger.info(
            f"Expiry sweep worker started (interval {self.interval_seconds}s, once={self.run_once})"
        )

        try:
            while self.running:
                await self.sweep()
                if self.run_once:
                    break
                try:
                    await asyncio.wait_for(
                        self._stopped.wait(), timeout=self.interval_seconds
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self.running = False

    def request_stop(self):
        """End the loop after the current pass without touching the engines."""
        self.running = False
        self._stopped.set()

    async def stop(self):
        self.request_stop()
        await dispose_engines()
        logger.info("Expiry sweep worker stopped")
