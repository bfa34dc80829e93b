from fastapi import APIRouter, Depends

from postex_bridge.dependencies import get_reconciler
from postex_bridge.services.reconciler import StatusReconciler

router = APIRouter(prefix="/sync", tags=["Status Sync"])


@router.post("")
def manual_sync(reconciler: StatusReconciler = Depends(get_reconciler)):
    report = reconciler.reconcile_once()
    return report.to_dict()
