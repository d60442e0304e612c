"""
Device account management: rename, refresh the push token, unenroll.
"""

import logging
from typing import Any, Dict, Optional

from ..core.types import DEFAULT_PUSH_SERVICE, Device, PushCredentials
from ..networking.request import GuardianAPIRequest
from ..networking.serializer import JsonSerializer
from ..networking.transport import HttpTransport
from ..types.errors import ValidationError

logger = logging.getLogger(__name__)


class DeviceAPIClient:
    """Calls on ``api/device-accounts/{id}`` authenticated with a bearer token."""

    def __init__(self, transport: HttpTransport, serializer: JsonSerializer, url: str, token: str,
                 push_service: str = DEFAULT_PUSH_SERVICE):
        if not token:
            raise ValidationError("Device account token is required", field='token')
        self.transport = transport
        self.serializer = serializer
        self.url = url
        self._token = token
        self.push_service = push_service

    def _request(self, method: str, parser) -> GuardianAPIRequest:
        request = GuardianAPIRequest(self.transport, method, self.url, parser, self.serializer)
        return request.set_bearer(self._token)

    def delete(self) -> GuardianAPIRequest[None]:
        """Remove the device account, ending the enrollment."""
        logger.debug(f"Deleting device account {self.url}")
        return self._request('DELETE', lambda _: None)

    def update(self, identifier: Optional[str] = None, name: Optional[str] = None,
               notification_token: Optional[str] = None) -> GuardianAPIRequest[Device]:
        """
        Update device account fields. Only the given fields are sent.

        Raises:
            ValidationError: when no field is given
        """
        fields: Dict[str, Any] = {}
        if identifier is not None:
            fields['identifier'] = identifier
        if name is not None:
            fields['name'] = name
        if notification_token is not None:
            fields['push_credentials'] = PushCredentials(notification_token, self.push_service).to_dict()
        if not fields:
            raise ValidationError("Nothing to update on the device account")

        request = self._request('PATCH', Device.from_dict)
        for key, value in fields.items():
            request.set_parameter(key, value)
        return request

    def create(self, identifier: str, name: str,
               notification_token: str) -> GuardianAPIRequest[Device]:
        """Set every device account field at once."""
        return self.update(identifier=identifier, name=name, notification_token=notification_token)
