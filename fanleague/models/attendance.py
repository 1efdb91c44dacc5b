"""
Attendance model: one row per (user, tournament)
"""

from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from fanleague.db.base import Base, utcnow
from fanleague.models.enums import AttendanceStatus, enum_values
import uuid


class Attendance(Base):
    """Attendance model - joins users and tournaments"""
    __tablename__ = "attendances"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    tournament_id = Column(UUID(as_uuid=True), ForeignKey("tournaments.id"), nullable=False, index=True)
    registration_date = Column(DateTime, nullable=False, default=utcnow)
    attendance_status = Column(
        Enum(AttendanceStatus, name="attendance_status", values_callable=enum_values),
        nullable=False,
        index=True,
        default=AttendanceStatus.REGISTERED,
    )
    checked_in_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    checked_in_at = Column(DateTime, nullable=True)
    loyalty_points_earned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", foreign_keys=[user_id], lazy="raise")
    tournament = relationship("Tournament", lazy="raise")

    # A user can only register once per tournament
    __table_args__ = (
        UniqueConstraint('user_id', 'tournament_id', name='uq_attendance_user_tournament'),
    )

    @property
    def event_date(self):
        """When the attendance was recorded; falls back to the last update."""
        return self.checked_in_at or self.updated_at

    def __repr__(self):
        return (
            f"<Attendance(id={self.id}, user_id={self.user_id}, "
            f"tournament_id={self.tournament_id}, status={self.attendance_status})>"
        )

    def to_dict(self):
        return {
            "id": str(self.id),
            "userId": str(self.user_id),
            "tournamentId": str(self.tournament_id),
            "registrationDate": self.registration_date.isoformat() if self.registration_date else None,
            "status": self.attendance_status.value,
            "checkedInBy": str(self.checked_in_by) if self.checked_in_by else None,
            "checkedInAt": self.checked_in_at.isoformat() if self.checked_in_at else None,
            "loyaltyPointsEarned": self.loyalty_points_earned,
        }
