import atexit

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from postex_bridge.models import SyncReport
from postex_bridge.services.reconciler import StatusReconciler
from postex_bridge.utils.logging import get_logger

SYNC_JOB_ID = "postex_status_sync"


class SyncScheduler:
    """Owns the periodic status sync job. One job, one reconciler, one run-lock (the reconciler's)."""

    def __init__(self, reconciler: StatusReconciler, interval_hours: int = 12, scheduler=None, logger=None):
        self.reconciler = reconciler
        self.interval_hours = interval_hours
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)
        self.logger = logger or get_logger(__name__)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self):
        if self.scheduler.running:
            return

        self.scheduler.add_job(
            func=self._tick,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id=SYNC_JOB_ID,
            name="Sync PostEx shipment statuses",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping executions
            coalesce=True,
        )
        self.scheduler.start()
        atexit.register(self.shutdown)
        self.logger.info("status_sync_scheduled", interval_hours=self.interval_hours)

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def trigger_now(self) -> SyncReport:
        """Manual sync. Safe while a scheduled run is active: the reconciler skips instead of overlapping."""
        return self.reconciler.reconcile_once()

    def _tick(self):
        report = self.reconciler.reconcile_once()
        if report.error:
            self.logger.warning("status_sync_will_retry", error=report.error, interval_hours=self.interval_hours)
