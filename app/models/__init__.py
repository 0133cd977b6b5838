"""ORM models package."""
from .agreement import AcceptanceStatus, Agreement, AgreementAcceptance, AgreementStatus, AgreementVersion
from .alert import ACTIVE_ALERT_STATUSES, TERMINAL_ALERT_STATUSES, Alert, AlertSeverity, AlertStatus
from .api_key import ApiKey, ApiScope
from .base import Base
from .contradiction import Contradiction, ContradictionSeverity, ContradictionStatus, ContradictionType
from .scheduler_lock import SchedulerLock
from .user import User

__all__ = [
    "ACTIVE_ALERT_STATUSES",
    "TERMINAL_ALERT_STATUSES",
    "AcceptanceStatus",
    "Agreement",
    "AgreementAcceptance",
    "AgreementStatus",
    "AgreementVersion",
    "Alert",
    "AlertSeverity",
    "AlertStatus",
    "ApiKey",
    "ApiScope",
    "Base",
    "Contradiction",
    "ContradictionSeverity",
    "ContradictionStatus",
    "ContradictionType",
    "SchedulerLock",
    "User",
]
