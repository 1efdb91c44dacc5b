"""
Admin model: capability record linking a user to a role and permissions
"""

from sqlalchemy import Column, Text, DateTime, Boolean, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from fanleague.db.base import Base, utcnow
from fanleague.models.enums import AdminRole, enum_values
import uuid

PERMISSIONS = (
    "manage_users",
    "manage_attendance",
    "manage_tournaments",
    "view_analytics",
    "export_data",
)


class Admin(Base):
    """Admin model - one per user at most"""
    __tablename__ = "admins"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True)
    role = Column(
        Enum(AdminRole, name="admin_role", values_callable=enum_values),
        nullable=False,
        default=AdminRole.ADMIN,
    )
    password_hash = Column(Text, nullable=False)

    manage_users = Column(Boolean, nullable=False, default=True)
    manage_attendance = Column(Boolean, nullable=False, default=True)
    manage_tournaments = Column(Boolean, nullable=False, default=False)
    view_analytics = Column(Boolean, nullable=False, default=True)
    export_data = Column(Boolean, nullable=False, default=False)

    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def has_permission(self, permission: str) -> bool:
        if permission not in PERMISSIONS:
            raise ValueError(f"Unknown permission: {permission}")
        if self.role == AdminRole.SUPER_ADMIN:
            return True
        return bool(getattr(self, permission))

    def __repr__(self):
        return f"<Admin(id={self.id}, user_id={self.user_id}, role={self.role})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "userId": str(self.user_id),
            "role": self.role.value,
            "permissions": {name: self.has_permission(name) for name in PERMISSIONS},
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
        }
