"""
Turning an enroll response into an Enrollment.
"""

import logging
from typing import Any, Dict, Optional

from ..core.types import CurrentDevice, Enrollment, TotpParams
from ..enrollment.ticket import EnrollmentTicket
from ..types.errors import ValidationError

logger = logging.getLogger(__name__)


REQUIRED_RESPONSE_KEYS = ('id', 'user_id', 'token')


def _ticket_totp(ticket: Optional[EnrollmentTicket]) -> Optional[TotpParams]:
    if ticket is None:
        return None
    return TotpParams(secret=ticket.secret, algorithm=ticket.algorithm,
                      digits=ticket.digits, period=ticket.period)


def create_enrollment(response: Dict[str, Any], device: CurrentDevice, signing_key: Any,
                      ticket: Optional[EnrollmentTicket] = None) -> Enrollment:
    """
    Build the Enrollment from the enroll response.

    When the response has no ``totp`` block and the enrollment started from a
    full enrollment URI, the URI's TOTP parameters are kept.

    Raises:
        ValidationError: when ``id``, ``user_id`` or ``token`` is missing, or
            the ``totp`` block is incomplete
    """
    if not isinstance(response, dict):
        raise ValidationError("Invalid enroll response: expected an object")

    missing = [key for key in REQUIRED_RESPONSE_KEYS if not response.get(key)]
    if missing:
        raise ValidationError(f"Invalid enroll response, missing fields: {', '.join(missing)}",
                              field=missing[0])

    totp = TotpParams.from_dict(response.get('totp'))
    if totp is None:
        totp = _ticket_totp(ticket)

    enrollment = Enrollment(
        id=response['id'],
        user_id=response['user_id'],
        device_identifier=device.identifier,
        device_name=device.name,
        device_token=response['token'],
        signing_key=signing_key,
        notification_token=device.notification_token,
        totp=totp,
        url=response.get('url'),
        issuer=response.get('issuer'),
        recovery_code=response.get('recovery_code'),
    )
    logger.info(f"Created enrollment {enrollment.id} for device {device.identifier}")
    return enrollment
