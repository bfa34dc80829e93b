from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from postex_bridge.models import SyncReport
from postex_bridge.services.scheduler import SYNC_JOB_ID, SyncScheduler


@pytest.fixture()
def sync_scheduler(reconciler):
    scheduler = SyncScheduler(reconciler, interval_hours=12, scheduler=BackgroundScheduler())
    yield scheduler
    scheduler.shutdown()


class TestSyncScheduler:
    def test_start_registers_single_interval_job(self, sync_scheduler):
        sync_scheduler.start()

        assert sync_scheduler.running is True
        job = sync_scheduler.scheduler.get_job(SYNC_JOB_ID)
        assert job.trigger.interval == timedelta(hours=12)
        assert job.max_instances == 1
        assert job.coalesce is True

    def test_start_twice_keeps_one_job(self, sync_scheduler):
        sync_scheduler.start()
        sync_scheduler.start()

        assert len(sync_scheduler.scheduler.get_jobs()) == 1

    def test_shutdown(self, sync_scheduler):
        sync_scheduler.start()
        sync_scheduler.shutdown()
        assert sync_scheduler.running is False

    def test_trigger_now_runs_reconciler(self):
        reconciler = MagicMock()
        reconciler.reconcile_once.return_value = SyncReport(checked=3, matched=2, updated=1)

        report = SyncScheduler(reconciler, scheduler=MagicMock()).trigger_now()

        assert report.updated == 1
        reconciler.reconcile_once.assert_called_once_with()

    def test_tick_logs_failed_run(self):
        reconciler = MagicMock()
        reconciler.reconcile_once.return_value = SyncReport(error="Network error")
        logger = MagicMock()

        SyncScheduler(reconciler, scheduler=MagicMock(), logger=logger)._tick()

        logger.warning.assert_called_once_with("status_sync_will_retry", error="Network error", interval_hours=12)
