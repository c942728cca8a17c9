"""
Activity feed service.

Other services call ``ActivityService.record`` after a successful
mutation to append a line to the group's feed.  A failure to write the
activity is logged and does not undo or fail the mutation that
triggered it.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..schemas.activity import ActivityCreate, ActivityRead, ActivityType
from ..storage.base import DEFAULT_ACTIVITY_LIMIT, SaccoStorage

logger = logging.getLogger(__name__)


class ActivityService:
    """Service class for writing and reading group activities."""

    @classmethod
    async def record(
        cls,
        storage: SaccoStorage,
        group_id: int,
        user_address: str,
        activity_type: ActivityType,
        description: str,
    ) -> Optional[ActivityRead]:
        """Append an activity; returns ``None`` if the write failed."""
        try:
            return await storage.add_activity(
                ActivityCreate(
                    group_id=group_id,
                    user_address=user_address,
                    activity_type=activity_type.value,
                    description=description,
                )
            )
        except Exception:
            logger.exception(
                "Failed to record %s activity for group %s", activity_type.value, group_id
            )
            return None

    @classmethod
    async def list_group_activities(
        cls, storage: SaccoStorage, group_id: int, limit: int = DEFAULT_ACTIVITY_LIMIT
    ) -> List[ActivityRead]:
        """Return the latest ``limit`` activities of a group, newest first."""
        return await storage.get_group_activities(group_id, limit)
