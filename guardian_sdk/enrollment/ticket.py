"""
Enrollment ticket parsing.

An enrollment is started from the data encoded in a Guardian QR code or an
enrollment email link. That data is either a bare ticket id or a full
``otpauth://totp/[issuer:]user?...`` URI.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import parse_qs, unquote, urlparse

from ..types.errors import ValidationError
from ..util.url import validate_url

logger = logging.getLogger(__name__)


OTPAUTH_SCHEME = "otpauth"
TOTP_AUTHORITY = "totp"
ENROLLMENT_TX_ID_PARAM = "enrollment_tx_id"

DEFAULT_ALGORITHM = "SHA1"
DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30

_INTEGER_RE = re.compile(r'[+-]?\d+')


def _query_parameters(query: str) -> Dict[str, str]:
    parsed = parse_qs(query, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def _parse_int(params: Dict[str, str], name: str, default: int) -> int:
    value = params.get(name)
    if value is None:
        return default
    if not _INTEGER_RE.fullmatch(value.strip()):
        raise ValidationError(f"Invalid data: '{name}' must be an integer", field=name, value=value)
    return int(value)


def _is_otpauth_totp(raw: str):
    try:
        uri = urlparse(raw.strip())
    except ValueError:
        return None
    if uri.scheme.lower() != OTPAUTH_SCHEME or uri.netloc.lower() != TOTP_AUTHORITY:
        return None
    return uri


def extract_ticket_id(enrollment_data: str) -> str:
    """
    Return the enrollment ticket id contained in ``enrollment_data``.

    Anything that is not an ``otpauth://totp`` URI carrying an
    ``enrollment_tx_id`` is taken verbatim as the ticket id.
    """
    uri = _is_otpauth_totp(enrollment_data)
    if uri is not None:
        ticket = _query_parameters(uri.query).get(ENROLLMENT_TX_ID_PARAM)
        if ticket:
            return ticket
    return enrollment_data


@dataclass(frozen=True)
class EnrollmentTicket:
    """Parameters decoded from an enrollment URI."""
    enrollment_transaction_id: str
    device_id: str
    base_url: str
    user: str
    issuer: str
    secret: str
    algorithm: str = DEFAULT_ALGORITHM
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD

    @classmethod
    def parse(cls, raw_data: str) -> "EnrollmentTicket":
        """
        Parse an ``otpauth://totp`` enrollment URI.

        Raises:
            ValidationError: when any required part is missing or malformed
        """
        if not isinstance(raw_data, str) or not raw_data.strip():
            raise ValidationError("Invalid data: enrollment data must be a non-empty string")

        uri = urlparse(raw_data.strip())
        if uri.scheme.lower() != OTPAUTH_SCHEME:
            raise ValidationError(
                f"Invalid data: scheme != '{OTPAUTH_SCHEME}' (is '{uri.scheme}')", field='scheme')
        if uri.netloc.lower() != TOTP_AUTHORITY:
            raise ValidationError(
                f"Invalid data: authority != '{TOTP_AUTHORITY}' (is '{uri.netloc}')", field='authority')

        params = _query_parameters(uri.query)

        digits = _parse_int(params, 'digits', DEFAULT_DIGITS)
        period = _parse_int(params, 'period', DEFAULT_PERIOD)
        algorithm = params.get('algorithm') or DEFAULT_ALGORITHM

        label = unquote(uri.path[1:]) if uri.path else ''
        if not label:
            raise ValidationError("Invalid data: path must contain the label", field='label')

        label_parts = label.split(':')
        issuer: Optional[str] = None
        if len(label_parts) > 1:
            issuer = label_parts[0]
            user = label_parts[1]
        else:
            user = label

        secret = params.get('secret')
        if not secret:
            raise ValidationError("Invalid data: it must have a 'secret'", field='secret')

        issuer_param = params.get('issuer')
        if issuer_param is not None and issuer is not None and issuer_param != issuer:
            raise ValidationError(
                "Invalid data: if both 'issuer' and issuer prefix at 'label' are present, "
                "they must be equal", field='issuer')
        if issuer_param is not None:
            issuer = issuer_param
        if not issuer:
            raise ValidationError(
                "Invalid data: it must have an 'issuer' or issuer prefix at 'label'", field='issuer')

        enrollment_transaction_id = params.get(ENROLLMENT_TX_ID_PARAM)
        if not enrollment_transaction_id:
            raise ValidationError(
                f"Invalid data: it must have an '{ENROLLMENT_TX_ID_PARAM}'", field=ENROLLMENT_TX_ID_PARAM)

        device_id = params.get('id')
        if not device_id:
            raise ValidationError("Invalid data: it must have an 'id'", field='id')

        base_url = params.get('base_url')
        if not base_url or not validate_url(base_url):
            raise ValidationError("Invalid data: 'base_url' must be a valid URL",
                                  field='base_url', value=base_url)

        logger.debug(f"Parsed enrollment ticket for issuer {issuer}")
        return cls(
            enrollment_transaction_id=enrollment_transaction_id,
            device_id=device_id,
            base_url=base_url,
            user=user,
            issuer=issuer,
            secret=secret,
            algorithm=algorithm,
            digits=digits,
            period=period,
        )

    @classmethod
    def try_parse(cls, raw_data: str) -> Optional["EnrollmentTicket"]:
        """Parse when ``raw_data`` looks like an enrollment URI, otherwise return None."""
        uri = _is_otpauth_totp(raw_data) if isinstance(raw_data, str) else None
        if uri is None or ENROLLMENT_TX_ID_PARAM not in _query_parameters(uri.query):
            return None
        return cls.parse(raw_data)
