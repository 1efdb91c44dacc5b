"""
Database enums
"""

import enum


class Language(enum.Enum):
    """Preferred interface language"""
    EN = "en"
    AR = "ar"


class AttendanceStatus(enum.Enum):
    """Attendance status enum"""
    REGISTERED = "registered"
    APPROVED = "approved"
    ATTENDED = "attended"
    NO_SHOW = "no-show"
    REJECTED = "rejected"


class AdminRole(enum.Enum):
    """Admin role enum"""
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class RewardType(enum.Enum):
    """Loyalty reward enum"""
    SCARF = "scarf"
    VIP_TICKET = "vipTicket"
    JERSEY = "jersey"


def enum_values(enum_cls):
    """Persist enum values (not member names) in the database."""
    return [member.value for member in enum_cls]
