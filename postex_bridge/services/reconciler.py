import threading
from datetime import date, datetime, timedelta, timezone

from postex_bridge.models import SyncReport
from postex_bridge.services.carrier_port import CarrierPort
from postex_bridge.services.shipment_store import ShipmentStore
from postex_bridge.utils.logging import get_logger

UNKNOWN_STATUS = "Unknown"


class StatusReconciler:
    """Pulls recent PostEx orders and copies changed statuses onto stored shipments.

    Only shipments whose carrier status differs from the stored one are
    written, so back-to-back runs over unchanged data write nothing. A run
    started while another is in progress returns a skipped report.
    """

    def __init__(self, carrier: CarrierPort, shipments: ShipmentStore, window_days: int = 30, logger=None):
        self.carrier = carrier
        self.shipments = shipments
        self.window_days = window_days
        self.logger = logger or get_logger(__name__)
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def reconcile_once(self, today: date | None = None) -> SyncReport:
        if not self._run_lock.acquire(blocking=False):
            self.logger.info("status_sync_skipped", reason="already running")
            return SyncReport(skipped=True)
        try:
            return self._run(today or date.today())
        except Exception as e:
            self.logger.exception("status_sync_crashed")
            return SyncReport(error=str(e))
        finally:
            self._run_lock.release()

    def _run(self, today: date) -> SyncReport:
        start = today - timedelta(days=self.window_days)
        result = self.carrier.list_shipments(start, today)
        if not result.success:
            message = result.error.user_message if result.error else "Unknown error"
            self.logger.error("status_sync_fetch_failed", error=message)
            return SyncReport(error=message)

        remote = [o for o in result.orders if isinstance(o, dict) and o.get("trackingNumber")]
        report = SyncReport(checked=len(remote))
        if not remote:
            return report

        local = self.shipments.find_by_tracking_numbers(str(o["trackingNumber"]) for o in remote)
        report.matched = len(local)

        for carrier_order in remote:
            tracking_number = str(carrier_order["trackingNumber"])
            order = local.get(tracking_number)
            if order is None:
                continue

            new_status = carrier_order.get("transactionStatus") or UNKNOWN_STATUS
            current_status = order.carrier_status
            if current_status == new_status:
                continue

            self.shipments.update_status(tracking_number, new_status, datetime.now(timezone.utc))
            self.shipments.add_note(
                tracking_number,
                f"PostEx status updated: {current_status or UNKNOWN_STATUS} → {new_status} "
                f"(Tracking: {tracking_number})",
            )
            # Keep the local view current in case the carrier lists a number twice
            local[tracking_number] = order.model_copy(update={"carrier_status": new_status})
            report.updated += 1

            self.logger.info("status_sync_updated", order_ref=order.order_ref, tracking_number=tracking_number,
                             old_status=current_status or UNKNOWN_STATUS, new_status=new_status)

        self.logger.info("status_sync_completed", updated=report.updated, checked=report.checked)
        return report
