"""
Loyalty credit model: admin-issued points or rewards, insert-only
"""

from sqlalchemy import Column, String, Integer, DateTime, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from fanleague.db.base import Base, utcnow
from fanleague.models.enums import RewardType, enum_values
import uuid


class LoyaltyCredit(Base):
    """Manual loyalty adjustment recorded alongside attendance"""
    __tablename__ = "loyalty_credits"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    points = Column(Integer, nullable=False, default=0)
    reward = Column(
        Enum(RewardType, name="reward_type", values_callable=enum_values),
        nullable=True,
    )
    reason = Column(String(255), nullable=True)
    admin_id = Column(UUID(as_uuid=True), ForeignKey("admins.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<LoyaltyCredit(id={self.id}, user_id={self.user_id}, points={self.points}, reward={self.reward})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "userId": str(self.user_id),
            "points": self.points,
            "reward": self.reward.value if self.reward else None,
            "reason": self.reason,
            "adminId": str(self.admin_id) if self.admin_id else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
