import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from rehearsal_scheduler.db import models

logger = logging.getLogger(__name__)


def notify_users(
    db: Session,
    user_ids: Iterable[int],
    type_: str,
    content: str,
    related_id: int | None = None,
    exclude: int | None = None,
) -> list[models.Notification]:
    """Queue one notification row per recipient on ``db``.

    The caller owns the transaction; nothing is committed here.  Duplicate
    recipients and ``exclude`` (usually the acting user) are skipped."""
    if type_ not in models.NOTIFICATION_TYPES:
        raise ValueError(f'Unknown notification type: {type_}')
    created = []
    seen = set()
    for user_id in user_ids:
        if user_id == exclude or user_id in seen:
            continue
        seen.add(user_id)
        notification = models.Notification(
            user_id=user_id,
            type=type_,
            content=content,
            related_id=related_id,
        )
        db.add(notification)
        created.append(notification)
    if created:
        logger.debug('Queued %d %s notification(s)', len(created), type_)
    return created
