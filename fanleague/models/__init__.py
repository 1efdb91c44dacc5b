# Models Package
from .user import User
from .tournament import Tournament
from .attendance import Attendance
from .admin import Admin
from .loyalty_credit import LoyaltyCredit
from .audit_log import AuditLog

__all__ = [
    "User",
    "Tournament",
    "Attendance",
    "Admin",
    "LoyaltyCredit",
    "AuditLog"
]
