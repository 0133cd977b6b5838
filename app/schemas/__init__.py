"""Schema package exports."""
from .agreement import (
    AcceptanceRead,
    AgreementActionResult,
    AgreementCreate,
    AgreementModify,
    AgreementPropose,
    AgreementRead,
    AgreementVersionRead,
)
from .alert import (
    AlertClose,
    AlertCreate,
    AlertCreateResult,
    AlertInserted,
    AlertRead,
    AlertSkipped,
    AlertSkipReason,
)
from .contradiction import (
    ContradictionCreate,
    ContradictionCreated,
    ContradictionRead,
    ContradictionUpdate,
)

__all__ = [
    "AcceptanceRead",
    "AgreementActionResult",
    "AgreementCreate",
    "AgreementModify",
    "AgreementPropose",
    "AgreementRead",
    "AgreementVersionRead",
    "AlertClose",
    "AlertCreate",
    "AlertCreateResult",
    "AlertInserted",
    "AlertRead",
    "AlertSkipped",
    "AlertSkipReason",
    "ContradictionCreate",
    "ContradictionCreated",
    "ContradictionRead",
    "ContradictionUpdate",
]
