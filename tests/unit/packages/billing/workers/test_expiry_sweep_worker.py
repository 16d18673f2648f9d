from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from common.core.config import settings
from packages.billing.models.domain.reconciliation import SweepSummary
from packages.billing.workers.expiry_sweep_worker import ExpirySweepWorker


@pytest.fixture
def reconciliation():
    service = MagicMock()
    service.run_expiry_sweep = AsyncMock(return_value=SweepSummary(found=1, processed=1))
    return service


@pytest.fixture(autouse=True)
def mock_dispose_engines():
    with patch(
        "packages.billing.workers.expiry_sweep_worker.dispose_engines",
        new_callable=AsyncMock,
    ) as dispose:
        yield dispose


class TestExpirySweepWorker:
    async def test_run_once(self, reconciliation):
        worker = ExpirySweepWorker(run_once=True, reconciliation_service=reconciliation)

        await worker.start()

        reconciliation.run_expiry_sweep.assert_awaited_once()
        assert worker.running is False

    async def test_failed_pass_is_logged_not_raised(self, reconciliation):
        reconciliation.run_expiry_sweep.side_effect = RuntimeError("boom")
        worker = ExpirySweepWorker(reconciliation_service=reconciliation)

        assert await worker.sweep() is None

    async def test_stop_ends_the_loop(self, reconciliation, mock_dispose_engines):
        worker = ExpirySweepWorker(interval_seconds=3600, reconciliation_service=reconciliation)

        async def sweep_then_stop():
            await worker.stop()
            return SweepSummary()

        reconciliation.run_expiry_sweep.side_effect = sweep_then_stop

        await worker.start()

        reconciliation.run_expiry_sweep.assert_awaited_once()
        mock_dispose_engines.assert_awaited_once()
        assert worker.running is False

    async def test_interval_defaults_to_settings(self):
        worker = ExpirySweepWorker()
        assert worker.interval_seconds == settings.expiry_sweep_interval_seconds

    async def test_request_stop_keeps_engines(self, reconciliation, mock_dispose_engines):
        worker = ExpirySweepWorker(interval_seconds=3600, reconciliation_service=reconciliation)

        async def sweep_then_request_stop():
            worker.request_stop()
            return SweepSummary()

        reconciliation.run_expiry_sweep.side_effect = sweep_then_request_stop

        await worker.start()

        assert worker.running is False
        mock_dispose_engines.assert_not_awaited()
