"""
Guardian API client: the named endpoints of the Guardian protocol.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Pattern, Union
from urllib.parse import quote

from ..auth.jwk import create_jwk
from ..auth.jwt import DEFAULT_JWT_CONFIG, JWTConfig, create_access_approval_jwt, create_basic_jwt
from ..core.types import DEFAULT_PUSH_SERVICE, PushCredentials
from ..networking.request import GuardianAPIRequest
from ..networking.serializer import JsonSerializer
from ..networking.transport import HttpTransport
from ..types.errors import ValidationError
from ..util.url import (
    DEFAULT_FIRST_PARTY_HOST_PATTERNS,
    DEFAULT_PATH_SEGMENT,
    join_path,
    normalize_base_url,
)
from .device import DeviceAPIClient

logger = logging.getLogger(__name__)


ENROLL_PATH = "api/enroll"
RESOLVE_TRANSACTION_PATH = "api/resolve-transaction"
DEVICE_ACCOUNTS_PATH = "api/device-accounts"


def create_push_credentials(notification_token: Optional[str],
                            service: str = DEFAULT_PUSH_SERVICE) -> Optional[Dict[str, str]]:
    """``push_credentials`` body field, None without a token."""
    if not notification_token:
        return None
    return PushCredentials(notification_token, service).to_dict()


class GuardianAPIClient:
    """
    Low level Guardian API.

    Every method returns a GuardianAPIRequest to run with ``run_blocking`` or
    ``run_async``. Input is validated and assertions are signed when the
    request is built, so those errors are raised immediately.
    """

    def __init__(self,
                 url: str,
                 transport: HttpTransport,
                 serializer: Optional[JsonSerializer] = None,
                 path_segment: str = DEFAULT_PATH_SEGMENT,
                 first_party_host_patterns: Iterable[Union[str, Pattern]] = DEFAULT_FIRST_PARTY_HOST_PATTERNS,
                 push_service: str = DEFAULT_PUSH_SERVICE,
                 jwt_config: JWTConfig = DEFAULT_JWT_CONFIG):
        self.base_url = normalize_base_url(url, path_segment, first_party_host_patterns)
        self.transport = transport
        self.serializer = serializer or JsonSerializer()
        self.push_service = push_service
        self.jwt_config = jwt_config
        logger.debug(f"Guardian API client for {self.base_url}")

    def url_for(self, *segments: str) -> str:
        return join_path(self.base_url, *segments)

    def _request(self, method: str, url: str, parser) -> GuardianAPIRequest:
        return GuardianAPIRequest(self.transport, method, url, parser, self.serializer)

    def enroll(self, ticket: str, device_identifier: str, device_name: str,
               notification_token: Optional[str], public_key: Any) -> GuardianAPIRequest[Dict[str, Any]]:
        """
        Create an enrollment from a ticket.

        The response map carries ``id``, ``url``, ``issuer``, ``user_id``,
        ``token`` and optional ``totp`` and ``recovery_code``.
        """
        if not ticket:
            raise ValidationError("Enrollment ticket is required", field='ticket')
        if not device_identifier:
            raise ValidationError("Device identifier is required", field='identifier')
        if not device_name:
            raise ValidationError("Device name is required", field='name')

        request = self._request('POST', self.url_for(ENROLL_PATH), lambda data: data)
        request.set_header('Authorization', f'Ticket id="{ticket}"')
        request.set_parameter('identifier', device_identifier)
        request.set_parameter('name', device_name)
        push_credentials = create_push_credentials(notification_token, self.push_service)
        if push_credentials is not None:
            request.set_parameter('push_credentials', push_credentials)
        request.set_parameter('public_key', create_jwk(public_key))
        return request

    def allow(self, transaction_token: str, device_identifier: str, challenge: str,
              private_key: Any) -> GuardianAPIRequest[None]:
        """Approve the login transaction of ``transaction_token``."""
        return self._resolve_transaction(transaction_token, device_identifier, challenge,
                                         private_key, accepted=True)

    def reject(self, transaction_token: str, device_identifier: str, challenge: str,
               private_key: Any, reason: Optional[str] = None) -> GuardianAPIRequest[None]:
        """Deny the login transaction of ``transaction_token``."""
        return self._resolve_transaction(transaction_token, device_identifier, challenge,
                                         private_key, accepted=False, reason=reason)

    def _resolve_transaction(self, transaction_token: str, device_identifier: str, challenge: str,
                             private_key: Any, accepted: bool,
                             reason: Optional[str] = None) -> GuardianAPIRequest[None]:
        if not transaction_token:
            raise ValidationError("Transaction token is required", field='transaction_token')
        if not challenge:
            raise ValidationError("Challenge is required", field='challenge')

        url = self.url_for(RESOLVE_TRANSACTION_PATH)
        challenge_response = create_access_approval_jwt(
            private_key, url, device_identifier, challenge, accepted, reason,
            config=self.jwt_config)

        logger.debug(f"Resolving transaction (accepted={accepted})")
        return self._request('POST', url, lambda _: None) \
            .set_bearer(transaction_token) \
            .set_parameter('challenge_response', challenge_response)

    def device_account_url(self, enrollment_id: str) -> str:
        return self.url_for(DEVICE_ACCOUNTS_PATH, quote(enrollment_id, safe=''))

    def device(self, enrollment_id: str, token: str) -> DeviceAPIClient:
        """Device account client authenticated with an opaque device token."""
        if not enrollment_id:
            raise ValidationError("Enrollment id is required", field='enrollment_id')
        return DeviceAPIClient(self.transport, self.serializer, self.device_account_url(enrollment_id),
                               token, self.push_service)

    def device_with_key(self, enrollment_id: str, device_identifier: str, user_id: str,
                        private_key: Any) -> DeviceAPIClient:
        """Device account client authenticated with a freshly signed basic JWT."""
        token = create_basic_jwt(private_key, self.url_for(DEVICE_ACCOUNTS_PATH),
                                 device_identifier, user_id, config=self.jwt_config)
        return self.device(enrollment_id, token)
