"""
Notification Service

Push delivery of proactive notifications via the Expo push API.

This service handles:
1. Persisting delivered-notification records for audit (proactive_notifications)
2. Sending push notifications to every active device token (push_tokens)
3. Deactivating tokens Expo reports as no longer registered
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

import httpx

from services.proactive.models import Notification

logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"

PUSH_PRIORITY = {"high": "high", "medium": "default", "low": "normal"}
PUSH_BODY_LIMIT = 100


@dataclass
class NotificationResult:
    """Result of a notification send attempt."""
    id: str
    status: Literal["sent", "pending", "failed"]
    error: Optional[str] = None
    delivered: int = 0


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def get_push_tokens(db_client, user_id: str) -> list[str]:
    try:
        result = (
            db_client.table("push_tokens")
            .select("token")
            .eq("user_id", user_id)
            .eq("active", True)
            .execute()
        )
        return [row["token"] for row in (result.data or []) if row.get("token")]
    except Exception as e:
        logger.error(f"[PUSH] Failed to load push tokens for {user_id}: {e}")
        return []


async def send_push_notification(
    db_client,
    user_id: str,
    notification: Notification,
    http_client: Optional[httpx.AsyncClient] = None,
) -> NotificationResult:
    """
    Push one notification to all of a user's active devices.

    Args:
        db_client: Supabase client (service role)
        user_id: Target user
        notification: The proactive notification to deliver
        http_client: Optional shared httpx client

    Returns:
        NotificationResult; delivered is the number of accepted tickets
    """
    tokens = get_push_tokens(db_client, user_id)
    if not tokens:
        return NotificationResult(id=notification.id, status="failed", error="No push tokens")

    messages = [
        {
            "to": token,
            "title": notification.title,
            "body": _truncate(notification.message, PUSH_BODY_LIMIT),
            "data": {
                "notificationId": notification.id,
                "type": notification.type,
                "actionType": notification.action_type,
                "actionPayload": notification.action_payload,
            },
            "sound": "default",
            "channelId": "proactive",
            "priority": PUSH_PRIORITY.get(notification.priority, "default"),
        }
        for token in tokens
    ]

    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    access_token = os.environ.get("EXPO_ACCESS_TOKEN")
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"

    try:
        if http_client is not None:
            response = await http_client.post(EXPO_PUSH_URL, headers=headers, json=messages)
        else:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(EXPO_PUSH_URL, headers=headers, json=messages)
    except httpx.TimeoutException:
        return NotificationResult(id=notification.id, status="failed", error="Request timed out")
    except httpx.RequestError as e:
        return NotificationResult(id=notification.id, status="failed", error=f"Request failed: {e}")

    if response.status_code != 200:
        logger.error(f"[PUSH] Expo API error: {response.status_code} - {response.text}")
        return NotificationResult(
            id=notification.id,
            status="failed",
            error=f"Expo API error: {response.status_code}",
        )

    tickets = response.json().get("data") or []
    delivered = 0
    for token, ticket in zip(tokens, tickets):
        if ticket.get("status") == "ok":
            delivered += 1
        elif (ticket.get("details") or {}).get("error") == "DeviceNotRegistered":
            _deactivate_token(db_client, token)

    logger.info(f"[PUSH] {user_id}: {delivered}/{len(tokens)} delivered ({notification.type})")
    if delivered == 0:
        return NotificationResult(id=notification.id, status="failed", error="No ticket accepted")
    return NotificationResult(id=notification.id, status="sent", delivered=delivered)


def _deactivate_token(db_client, token: str) -> None:
    try:
        db_client.table("push_tokens").update({
            "active": False,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("token", token).execute()
        logger.info("[PUSH] Deactivated stale token")
    except Exception as e:
        logger.warning(f"[PUSH] Failed to deactivate token: {e}")


def record_delivered(db_client, user_id: str, notification: Notification, channel: str = "push") -> Optional[str]:
    """
    Persist a delivered notification for audit. Non-fatal.

    Returns:
        proactive_notifications row id, or None on error
    """
    try:
        result = db_client.table("proactive_notifications").insert({
            "user_id": user_id,
            "notification_id": notification.id,
            "type": notification.type,
            "priority": notification.priority,
            "title": notification.title,
            "message": notification.message,
            "action_type": notification.action_type,
            "action_payload": notification.action_payload or {},
            "channel": channel,
            "delivered_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
        return result.data[0]["id"] if result.data else None
    except Exception as e:
        logger.error(f"[PUSH] Failed to record delivered notification: {e}")
        return None
