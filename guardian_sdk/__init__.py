"""
Guardian SDK Python Package

Push notification multi-factor authentication client - Python Implementation
"""

__version__ = "0.1.0"
__author__ = "Mauricio Fernandez"
__email__ = "mauricio.fernandez@siemens.com"

from .core.guardian import Guardian
from .core.config import GuardianConfig
from .core.types import (
    CurrentDevice,
    Device,
    Enrollment,
    TotpParams,
)
from .consent.types import RichConsent, authorization_details_type
from .enrollment.ticket import EnrollmentTicket
from .networking.request import (
    Callback,
    FunctionCallback,
    GuardianAPIRequest,
    PendingRequest,
    map_request,
    run_async,
    run_blocking,
)
from .notification.notification import Notification
from .types.errors import ErrorKind, GuardianException

__all__ = [
    "Guardian",
    "GuardianConfig",
    "CurrentDevice",
    "Device",
    "Enrollment",
    "TotpParams",
    "RichConsent",
    "authorization_details_type",
    "EnrollmentTicket",
    "Callback",
    "FunctionCallback",
    "GuardianAPIRequest",
    "PendingRequest",
    "map_request",
    "run_async",
    "run_blocking",
    "Notification",
    "ErrorKind",
    "GuardianException",
]
