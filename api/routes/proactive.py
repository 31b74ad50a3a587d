"""
Proactive notification routes

Mounted at /api/proactive.

Endpoints:
  GET  /notifications           - Notifications the user should see now (?at= to pin the clock)
  POST /notifications/feedback  - Report dismiss / dismiss_today / mark_shown / accept
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from services.proactive.engine import ProactiveEngine, build_engine
from services.proactive.models import Notification
from services.supabase import CurrentUser, get_service_client

logger = logging.getLogger(__name__)

router = APIRouter()

FEEDBACK_ACTIONS = ("dismiss", "dismiss_today", "mark_shown", "accept")


def get_engine() -> ProactiveEngine:
    return build_engine(get_service_client())


Engine = Annotated[ProactiveEngine, Depends(get_engine)]


# ─── Pydantic Models ──────────────────────────────────────────────────────────

class NotificationOut(BaseModel):
    id: str
    type: str
    priority: Literal["high", "medium", "low"]
    title: str
    message: str
    action_type: Optional[str] = None
    action_payload: Optional[dict] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_notification(cls, n: Notification) -> "NotificationOut":
        return cls(
            id=n.id,
            type=n.type,
            priority=n.priority,
            title=n.title,
            message=n.message,
            action_type=n.action_type,
            action_payload=n.action_payload,
            expires_at=n.expires_at,
        )


class NotificationsResponse(BaseModel):
    notifications: list[NotificationOut]
    context: dict


class FeedbackRequest(BaseModel):
    action: str
    notification_id: Optional[str] = None
    notification_type: Optional[str] = None
    action_type: Optional[str] = None
    action_payload: Optional[dict] = None
    at: Optional[datetime] = None


class FeedbackResponse(BaseModel):
    success: bool


# ─── Routes ───────────────────────────────────────────────────────────────────

@router.get("/notifications", response_model=NotificationsResponse)
async def get_notifications(auth: CurrentUser, engine: Engine, at: Optional[datetime] = None):
    """Evaluate the user's proactive notifications at `at` (default: now)."""
    now = at or datetime.now(timezone.utc)
    try:
        evaluation = await engine.evaluate_detailed(auth.user_id, now)
    except Exception as e:
        logger.error(f"[PROACTIVE] evaluate failed for {auth.user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate notifications")

    return NotificationsResponse(
        notifications=[NotificationOut.from_notification(n) for n in evaluation.notifications],
        context=evaluation.context_summary(),
    )


@router.post("/notifications/feedback", response_model=FeedbackResponse)
async def post_feedback(request: FeedbackRequest, auth: CurrentUser, engine: Engine):
    """Record what the user did with a notification."""
    if request.action not in FEEDBACK_ACTIONS:
        raise HTTPException(status_code=400, detail=f"Invalid action: {request.action}")

    user_id = auth.user_id
    if request.action in ("dismiss", "mark_shown", "accept") and not request.notification_id:
        raise HTTPException(status_code=400, detail="notification_id is required")
    if request.action in ("dismiss_today", "mark_shown") and not request.notification_type:
        raise HTTPException(status_code=400, detail="notification_type is required")

    try:
        if request.action == "dismiss":
            ok = await engine.dismiss(user_id, request.notification_id, request.notification_type, now=request.at)
        elif request.action == "dismiss_today":
            ok = await engine.dismiss_today(user_id, request.notification_type, now=request.at)
        elif request.action == "mark_shown":
            ok = await engine.mark_shown(user_id, request.notification_id, request.notification_type, now=request.at)
        else:
            ok = await engine.accept(
                user_id,
                request.notification_id,
                request.notification_type,
                action_type=request.action_type,
                action_payload=request.action_payload,
                now=request.at,
            )
    except Exception as e:
        logger.error(f"[PROACTIVE] feedback {request.action} failed for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to process feedback")

    if not ok:
        raise HTTPException(status_code=500, detail="Failed to record feedback")
    return FeedbackResponse(success=True)
