"""Response envelope, request body base class and the ORM-to-JSON
serialisers shared by the routers.

Every body sent by the API has the shape
``{"success": bool, "message"?: str, "data"?: any, "error"?: str}``."""

from http import HTTPStatus

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from rehearsal_scheduler.db import models


class CamelModel(BaseModel):
    """Request body accepting camelCase keys (``bandId``) as sent by the
    front end, while exposing snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def send_json(status_code: int = HTTPStatus.OK, data=None, message: str | None = None, **extra) -> JSONResponse:
    """Wrap ``data`` in the success envelope and serialise it."""
    payload = {'success': 200 <= int(status_code) < 400}
    if message is not None:
        payload['message'] = message
    if data is not None:
        payload['data'] = data
    payload.update(extra)
    return JSONResponse(status_code=int(status_code), content=jsonable_encoder(payload))


def send_error(status_code: int, message: str, headers: dict | None = None, **extra) -> JSONResponse:
    payload = {
        'success': False,
        'message': message,
        'error': HTTPStatus(status_code).phrase,
    }
    payload.update(extra)
    return JSONResponse(status_code=int(status_code), content=jsonable_encoder(payload), headers=headers)


#############################
# Serialisers
#############################


def user_summary(user: models.User | None) -> dict | None:
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'email': user.email}


def user_to_dict(user: models.User) -> dict:
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'instrument': user.instrument,
        'profileImageUrl': user.profile_image_url,
        'lastLoginAt': user.last_login_at,
        'createdAt': user.created_at,
    }


def member_to_dict(member: models.BandMember) -> dict:
    return {
        'id': member.id,
        'bandId': member.band_id,
        'userId': member.user_id,
        'role': member.role,
        'status': member.status,
        'joinedAt': member.joined_at,
        'user': user_summary(member.user),
    }


def band_to_dict(band: models.Band) -> dict:
    return {
        'id': band.id,
        'name': band.name,
        'description': band.description,
        'genre': band.genre,
        'createdAt': band.created_at,
        'updatedAt': band.updated_at,
    }


def rehearsal_to_dict(rehearsal: models.Rehearsal) -> dict:
    return {
        'id': rehearsal.id,
        'bandId': rehearsal.band_id,
        'title': rehearsal.title,
        'description': rehearsal.description,
        'location': rehearsal.location,
        'startDatetime': rehearsal.start_datetime,
        'endDatetime': rehearsal.end_datetime,
        'isRecurring': rehearsal.is_recurring,
        'recurrencePattern': rehearsal.recurrence_pattern,
        'createdById': rehearsal.created_by_id,
        'createdAt': rehearsal.created_at,
        'updatedAt': rehearsal.updated_at,
    }


def attendance_to_dict(attendance: models.RehearsalAttendance) -> dict:
    return {
        'id': attendance.id,
        'rehearsalId': attendance.rehearsal_id,
        'userId': attendance.user_id,
        'status': attendance.status,
        'reason': attendance.reason,
        'responseTime': attendance.response_time,
        'user': user_summary(attendance.user),
    }


def material_to_dict(material: models.RehearsalMaterial) -> dict:
    return {
        'id': material.id,
        'rehearsalId': material.rehearsal_id,
        'title': material.title,
        'type': material.type,
        'fileName': material.file_name,
        'url': material.url,
        'content': material.content,
        'createdAt': material.created_at,
        'uploadedBy': user_summary(material.uploaded_by),
    }


def availability_to_dict(slot: models.Availability) -> dict:
    return {
        'id': slot.id,
        'dayOfWeek': slot.day_of_week,
        'startTime': slot.start_time,
        'endTime': slot.end_time,
    }


def notification_to_dict(notification: models.Notification) -> dict:
    return {
        'id': notification.id,
        'type': notification.type,
        'content': notification.content,
        'relatedId': notification.related_id,
        'isRead': notification.is_read,
        'createdAt': notification.created_at,
    }
