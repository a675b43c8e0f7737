from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from supportdesk.models import ActivityItem, ActivityType
from supportdesk.storage.base import RecordKind, RecordStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ActivityRecorder:
    """Append entries to the write-once activity log."""

    store: RecordStore

    async def record(
        self,
        activity_type: ActivityType,
        description: str,
        *,
        user_id: str,
        ticket_id: str | None = None,
    ) -> ActivityItem:
        item = ActivityItem(
            id=str(uuid.uuid4()),
            type=activity_type,
            description=description,
            user_id=user_id,
            ticket_id=ticket_id,
            created_at=datetime.now(timezone.utc),
        )
        await self.store.insert(RecordKind.ACTIVITY, item)
        logger.debug("Recorded %s activity for ticket %s", activity_type.value, ticket_id)
        return item
