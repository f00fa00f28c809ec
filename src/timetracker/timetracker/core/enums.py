from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles, lowest to highest privilege."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class TimesheetStatus(str, Enum):
    """Weekly timesheet lifecycle."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class VacationStatus(str, Enum):
    """Time-off request lifecycle."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RequestType(str, Enum):
    VACATION = "VACATION"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    BEREAVEMENT = "BEREAVEMENT"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"


class ReviewDecision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class NotificationKind(str, Enum):
    TIMESHEET_SUBMITTED = "timesheet-submitted"
    TIMESHEET_APPROVED = "timesheet-approved"
    TIMESHEET_REJECTED = "timesheet-rejected"
    VACATION_SUBMITTED = "vacation-submitted"
    VACATION_APPROVED = "vacation-approved"
    VACATION_REJECTED = "vacation-rejected"


class TimeFormat(str, Enum):
    H12 = "12h"
    H24 = "24h"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Province(str, Enum):
    """The 13 Canadian provinces and territories."""

    ALBERTA = "Alberta"
    BRITISH_COLUMBIA = "British Columbia"
    MANITOBA = "Manitoba"
    NEW_BRUNSWICK = "New Brunswick"
    NEWFOUNDLAND_AND_LABRADOR = "Newfoundland and Labrador"
    NORTHWEST_TERRITORIES = "Northwest Territories"
    NOVA_SCOTIA = "Nova Scotia"
    NUNAVUT = "Nunavut"
    ONTARIO = "Ontario"
    PRINCE_EDWARD_ISLAND = "Prince Edward Island"
    QUEBEC = "Quebec"
    SASKATCHEWAN = "Saskatchewan"
    YUKON = "Yukon"
