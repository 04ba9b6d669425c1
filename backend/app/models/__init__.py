from app.models.base import Base
from app.models.user import PROVIDER_ROLES, Role, User
from app.models.audit_log import AuditLog
from app.models.provider import Provider, ProviderKind, ProviderSlot
from app.models.booking import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    PatientSex,
    ServiceType,
    TreatmentStatus,
)
from app.models.notification import Notification, NotificationType

__all__ = [
    "Base",
    "Role",
    "PROVIDER_ROLES",
    "User",
    "AuditLog",
    "Provider",
    "ProviderKind",
    "ProviderSlot",
    "ACTIVE_STATUSES",
    "Booking",
    "BookingStatus",
    "PatientSex",
    "ServiceType",
    "TreatmentStatus",
    "Notification",
    "NotificationType",
]
