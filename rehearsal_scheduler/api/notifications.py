from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from rehearsal_scheduler.api.common import notification_to_dict, send_json
from rehearsal_scheduler.auth import get_current_user
from rehearsal_scheduler.db import get_db, models, safe_commit

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def _own_notification(db: Session, user: models.User, notification_id: int) -> models.Notification:
    notification = db.get(models.Notification, notification_id)
    if notification is None or notification.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Notification not found')
    return notification


@router.get("")
def list_notifications(
    unread: bool = Query(default=False),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(models.Notification).filter_by(user_id=user.id)
    if unread:
        query = query.filter_by(is_read=False)
    rows = query.order_by(models.Notification.created_at.desc(), models.Notification.id.desc()).all()
    return send_json(data=[notification_to_dict(n) for n in rows])


@router.put("/read-all")
def mark_all_read(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = (
        db.query(models.Notification)
        .filter_by(user_id=user.id, is_read=False)
        .update({models.Notification.is_read: True}, synchronize_session=False)
    )
    safe_commit(db)
    return send_json(message='Notifications marked as read', data={'updated': updated})


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = _own_notification(db, user, notification_id)
    notification.is_read = True
    safe_commit(db)
    db.refresh(notification)
    return send_json(data=notification_to_dict(notification))


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = _own_notification(db, user, notification_id)
    db.delete(notification)
    safe_commit(db)
    return send_json(message='Notification deleted')
