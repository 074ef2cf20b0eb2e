from __future__ import annotations

from typing import List, Optional

from ..common.schemas import ApiModel


class MarkReadBody(ApiModel):
    """No ids marks every notification of the user as read."""

    notification_ids: Optional[List[str]] = None
