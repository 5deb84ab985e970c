"""Best-effort Redis pub/sub broadcasts for challenge lifecycle events."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

CHALLENGE_COMPLETED = "pubsub:challenge_completed"
CHALLENGE_SETTLED = "pubsub:challenge_settled"


async def publish_event(redis: object | None, channel: str, payload: dict[str, Any]) -> None:
    """Publish a JSON payload. Never raises; the data is already committed."""
    if redis is None:
        return
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("Failed to publish %s broadcast", channel, exc_info=True)
