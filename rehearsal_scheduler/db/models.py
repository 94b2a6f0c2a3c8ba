import datetime as dt

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    ForeignKey,
    DateTime,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import relationship

from . import Base


def utcnow() -> dt.datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


USER_ROLES = ('USER', 'ADMIN')

MEMBER_ROLES = ('LEADER', 'MEMBER')
LEADER = 'LEADER'
MEMBER = 'MEMBER'

MEMBER_STATUSES = ('ACTIVE', 'INACTIVE', 'INVITED')
ACTIVE = 'ACTIVE'
INACTIVE = 'INACTIVE'
INVITED = 'INVITED'

ATTENDANCE_STATUSES = ('PENDING', 'CONFIRMED', 'MAYBE', 'DECLINED')
PENDING = 'PENDING'
CONFIRMED = 'CONFIRMED'
MAYBE = 'MAYBE'
DECLINED = 'DECLINED'

MATERIAL_TYPES = ('SHEET_MUSIC', 'AUDIO', 'VIDEO', 'LINK', 'NOTE', 'OTHER')

NOTIFICATION_TYPES = (
    'BAND_INVITATION',
    'NEW_REHEARSAL',
    'REHEARSAL_UPDATED',
    'REHEARSAL_CANCELLED',
    'ATTENDANCE_UPDATE',
    'NEW_MATERIAL',
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default='USER')
    instrument = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    memberships = relationship("BandMember", back_populates="user")
    availability = relationship(
        "Availability", back_populates="user", cascade="all, delete-orphan"
    )
    notifications = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )


class Band(Base):
    __tablename__ = "bands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    genre = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    members = relationship(
        "BandMember", back_populates="band", cascade="all, delete-orphan"
    )
    rehearsals = relationship(
        "Rehearsal", back_populates="band", cascade="all, delete-orphan"
    )


class BandMember(Base):
    __tablename__ = "band_members"
    __table_args__ = (UniqueConstraint("band_id", "user_id", name="uq_band_members_band_user"),)

    id = Column(Integer, primary_key=True, index=True)
    band_id = Column(Integer, ForeignKey("bands.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False, default=MEMBER)
    status = Column(String, nullable=False, default=ACTIVE)
    joined_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    band = relationship("Band", back_populates="members")
    user = relationship("User", back_populates="memberships")


class Rehearsal(Base):
    __tablename__ = "rehearsals"
    __table_args__ = (Index("ix_rehearsals_band_start", "band_id", "start_datetime"),)

    id = Column(Integer, primary_key=True, index=True)
    band_id = Column(Integer, ForeignKey("bands.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=False)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_pattern = Column(String, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    band = relationship("Band", back_populates="rehearsals")
    created_by = relationship("User")
    attendance = relationship(
        "RehearsalAttendance", back_populates="rehearsal", cascade="all, delete-orphan"
    )
    materials = relationship(
        "RehearsalMaterial", back_populates="rehearsal", cascade="all, delete-orphan"
    )


class RehearsalAttendance(Base):
    __tablename__ = "rehearsal_attendance"
    __table_args__ = (
        UniqueConstraint("rehearsal_id", "user_id", name="uq_attendance_rehearsal_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    rehearsal_id = Column(Integer, ForeignKey("rehearsals.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=False, default=PENDING)
    reason = Column(Text, nullable=True)
    response_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    rehearsal = relationship("Rehearsal", back_populates="attendance")
    user = relationship("User")


class RehearsalMaterial(Base):
    __tablename__ = "rehearsal_materials"

    id = Column(Integer, primary_key=True, index=True)
    rehearsal_id = Column(Integer, ForeignKey("rehearsals.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False, default='OTHER')
    file_name = Column(String, nullable=True)
    url = Column(String, nullable=True)
    content = Column(Text, nullable=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    rehearsal = relationship("Rehearsal", back_populates="materials")
    uploaded_by = relationship("User")


class Availability(Base):
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="availability")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    related_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="notifications")
