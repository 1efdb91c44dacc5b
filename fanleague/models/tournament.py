"""
Tournament model
"""

from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from fanleague.db.base import Base, utcnow
import uuid


class Tournament(Base):
    """An event supporters register for and attend"""
    __tablename__ = "tournaments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    game = Column(String(128), nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)
    loyalty_points_value = Column(Integer, nullable=False, default=1)
    is_priority_event = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    venue_information = Column(Text, nullable=True)
    participating_teams = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Tournament(id={self.id}, title={self.title}, date={self.date})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "title": self.title,
            "game": self.game,
            "date": self.date.isoformat() if self.date else None,
            "location": self.location,
            "capacity": self.capacity,
            "loyaltyPointsValue": self.loyalty_points_value,
            "isPriorityEvent": bool(self.is_priority_event),
            "description": self.description,
            "venueInformation": self.venue_information,
            "participatingTeams": list(self.participating_teams or []),
        }
