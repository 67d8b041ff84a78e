"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from an external scheduler (cron, CI job).
"""

import hmac

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.deps import get_db
from portal.schemas.notification import NotificationStats, PurgeResponse
from portal.services import notification_service


def verify_internal_secret(x_internal_secret: str = Header(default="")):
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if not hmac.compare_digest(x_internal_secret, expected):
        raise HTTPException(status_code=403, detail="Invalid internal secret")


router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(verify_internal_secret)],
)


@router.post("/scheduled/notifications/purge", response_model=PurgeResponse)
def purge_notifications(
    days: int = Query(settings.NOTIFICATION_RETENTION_DAYS, ge=0),
    db: Session = Depends(get_db),
):
    """Daily sweep: delete notifications older than the retention window."""
    deleted = notification_service.purge_older_than(db, days=days)
    return PurgeResponse(deleted=deleted, older_than_days=days)


@router.get("/notifications/stats", response_model=NotificationStats)
def notification_stats(db: Session = Depends(get_db)):
    return notification_service.stats(db)
