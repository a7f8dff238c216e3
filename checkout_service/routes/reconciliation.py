"""Operator routes for post-commit reconciliation"""

from fastapi import APIRouter, Depends

from ..models.reconciliation import ReconciliationTask, RetrySummary
from ..security.auth import require_admin_key
from ..services.checkout import CheckoutService
from .checkout import get_checkout_service

router = APIRouter(
    prefix="/api/reconciliation",
    tags=["Reconciliation"],
    dependencies=[Depends(require_admin_key)],
)


@router.get("", response_model=list[ReconciliationTask])
async def list_open_tasks(service: CheckoutService = Depends(get_checkout_service)):
    """Side effects that failed after their order was committed"""
    return service.reconciliation.queue.list_open()


@router.post("/retry", response_model=RetrySummary)
async def retry_open_tasks(service: CheckoutService = Depends(get_checkout_service)):
    """Re-run every open task"""
    return service.reconciliation.retry_pending()
