"""
User model
"""

from sqlalchemy import Column, String, Integer, DateTime, Boolean, Enum, JSON
from sqlalchemy.dialects.postgresql import UUID
from fanleague.db.base import Base, utcnow
from fanleague.models.enums import Language, enum_values
import uuid


class User(Base):
    """Registered supporter"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    # National number, stored without a leading "+"
    phone_number = Column(String(32), nullable=False, unique=True)
    # Stored as "+<digits>"
    country_code = Column(String(8), nullable=False)
    location = Column(String(255), nullable=False)
    favorite_games = Column(JSON, nullable=False, default=list)
    language = Column(
        Enum(Language, name="user_language", values_callable=enum_values),
        nullable=False,
        default=Language.EN,
    )

    is_verified = Column(Boolean, nullable=False, default=False)
    verification_code = Column(String(16), nullable=True)
    verification_expires = Column(DateTime, nullable=True)

    # Projection of attendance + loyalty credits, refreshed by loyalty_repo
    loyalty_points = Column(Integer, nullable=False, default=0)
    reward_scarf = Column(Boolean, nullable=False, default=False)
    reward_vip_ticket = Column(Boolean, nullable=False, default=False)
    reward_jersey = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def e164(self) -> str:
        return f"{self.country_code}{self.phone_number}"

    @property
    def rewards(self) -> dict:
        return {
            "scarf": bool(self.reward_scarf),
            "vipTicket": bool(self.reward_vip_ticket),
            "jersey": bool(self.reward_jersey),
        }

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, phone={self.e164})>"

    def to_public_dict(self):
        """Shape returned by the registration and verification endpoints"""
        return {
            "id": str(self.id),
            "fullName": self.full_name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "isVerified": bool(self.is_verified),
        }

    def to_dict(self):
        return {
            **self.to_public_dict(),
            "countryCode": self.country_code,
            "location": self.location,
            "favoriteGames": list(self.favorite_games or []),
            "language": self.language.value if self.language else Language.EN.value,
            "loyaltyPoints": self.loyalty_points or 0,
            "rewards": self.rewards,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
