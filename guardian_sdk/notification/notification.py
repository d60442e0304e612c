"""
Push notification payload decoding.

Guardian push notifications carry a flat map of short keys. Notifications
arrive unsolicited, so an invalid payload decodes to ``None`` instead of
raising.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Tuple, TypeVar
from urllib.parse import urlparse, urlunparse

from ..util.encoding import safe_json_decode

logger = logging.getLogger(__name__)


TRANSACTION_TOKEN_KEY = "txtkn"
ENROLLMENT_ID_KEY = "dai"
DATE_KEY = "d"
SOURCE_KEY = "s"
HOSTNAME_KEY = "sh"
LOCATION_KEY = "l"
CHALLENGE_KEY = "c"
TRANSACTION_LINKING_ID_KEY = "txlnkid"

LATITUDE_KEY = "lat"
LONGITUDE_KEY = "long"
BROWSER_KEY = "b"
OS_KEY = "os"
NAME_KEY = "n"
VERSION_KEY = "v"

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_DATE_RE = re.compile(r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z')

E = TypeVar('E')


def _string(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    return value if isinstance(value, str) and value else None


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a ``yyyy-MM-dd'T'HH:mm:ss.SSS'Z'`` UTC timestamp."""
    if value is None or not _DATE_RE.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        logger.debug(f"Error while parsing notification date {value!r}")
        return None


def parse_hostname(hostname: str) -> Optional[str]:
    """Turn the ``sh`` value into an absolute URL, https when no scheme is given."""
    if hostname.lower().startswith('http'):
        parsed = urlparse(hostname)
        if parsed.scheme.lower() not in ('http', 'https') or not parsed.netloc:
            return None
        return urlunparse((parsed.scheme.lower(), parsed.netloc, parsed.path or '/', '', '', ''))
    host = hostname.strip().strip('/')
    if not host:
        return None
    return f"https://{host}/"


def _parse_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _name_and_version(data: Any) -> Tuple[Optional[str], Optional[str]]:
    if not isinstance(data, dict):
        return None, None
    name = data.get(NAME_KEY)
    version = data.get(VERSION_KEY)
    return (name if isinstance(name, str) else None,
            version if isinstance(version, str) else None)


@dataclass(frozen=True)
class Source:
    """Browser and OS that started the authentication."""
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    os_name: Optional[str] = None
    os_version: Optional[str] = None

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Source":
        data = safe_json_decode(raw)
        if not isinstance(data, dict):
            if raw is not None:
                logger.warning("Ignoring malformed notification source info")
            return cls()
        browser_name, browser_version = _name_and_version(data.get(BROWSER_KEY))
        os_name, os_version = _name_and_version(data.get(OS_KEY))
        return cls(browser_name, browser_version, os_name, os_version)


@dataclass(frozen=True)
class Location:
    """Approximate location that started the authentication."""
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Location":
        data = safe_json_decode(raw)
        if not isinstance(data, dict):
            if raw is not None:
                logger.warning("Ignoring malformed notification location info")
            return cls()
        name = data.get(NAME_KEY)
        return cls(
            name if isinstance(name, str) else None,
            _parse_float(data.get(LATITUDE_KEY)),
            _parse_float(data.get(LONGITUDE_KEY)),
        )


@dataclass(frozen=True)
class Notification:
    """A decoded Guardian authentication request."""
    enrollment_id: str
    transaction_token: str
    url: str
    date: datetime
    challenge: str
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    transaction_linking_id: Optional[str] = None

    @classmethod
    def parse(cls, payload: Mapping[str, Any]) -> Optional["Notification"]:
        """
        Decode a push notification payload.

        Returns:
            the notification, or None when the payload is not a valid
            Guardian notification
        """
        if not isinstance(payload, Mapping):
            return None

        hostname = _string(payload, HOSTNAME_KEY)
        enrollment_id = _string(payload, ENROLLMENT_ID_KEY)
        transaction_token = _string(payload, TRANSACTION_TOKEN_KEY)
        challenge = _string(payload, CHALLENGE_KEY)
        date = parse_date(_string(payload, DATE_KEY))

        if hostname is None or enrollment_id is None or transaction_token is None \
                or challenge is None or date is None:
            logger.debug("Payload is not a Guardian notification")
            return None

        url = parse_hostname(hostname)
        if url is None:
            logger.debug(f"Invalid notification hostname {hostname!r}")
            return None

        source = Source.parse(_string(payload, SOURCE_KEY))
        location = Location.parse(_string(payload, LOCATION_KEY))

        return cls(
            enrollment_id=enrollment_id,
            transaction_token=transaction_token,
            url=url,
            date=date,
            challenge=challenge,
            os_name=source.os_name,
            os_version=source.os_version,
            browser_name=source.browser_name,
            browser_version=source.browser_version,
            location=location.name,
            latitude=location.latitude,
            longitude=location.longitude,
            transaction_linking_id=_string(payload, TRANSACTION_LINKING_ID_KEY),
        )

    def matches(self, enrollment: Any) -> bool:
        """True when the notification was sent to ``enrollment``."""
        return getattr(enrollment, 'id', None) == self.enrollment_id


def find_enrollment(notification: Notification, enrollments: Iterable[E]) -> Optional[E]:
    """Pick the enrollment a notification belongs to."""
    for enrollment in enrollments:
        if notification.matches(enrollment):
            return enrollment
    return None
