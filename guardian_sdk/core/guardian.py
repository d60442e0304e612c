"""
Main Guardian implementation for Python.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

import logging
from typing import Any, Mapping, Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from ..api.client import GuardianAPIClient
from ..api.consents import RichConsentsAPIClient
from ..api.enroll import create_enrollment
from ..consent.types import RichConsent
from ..enrollment.ticket import EnrollmentTicket, extract_ticket_id
from ..networking.client_info import ClientInfo
from ..networking.request import GuardianAPIRequest, map_request
from ..networking.serializer import JsonSerializer
from ..networking.transport import HttpTransport
from ..notification.notification import Notification
from ..otp.totp import TOTP
from ..types.errors import InvalidArgumentError, ValidationError
from .config import GuardianConfig
from .types import CurrentDevice, Device, Enrollment


class Guardian:
    """
    Entry point of the Guardian SDK.
    Use Guardian.new() to construct an instance. Provides enrollment,
    unenrollment, login approval and rejection, consent lookup and TOTP codes.

    Network operations return a GuardianAPIRequest; run it with
    ``request.execute()`` (blocking) or ``request.start(callback)``.
    """

    def __init__(
        self,
        api_client: GuardianAPIClient,
        consents_client: RichConsentsAPIClient,
        transport: Optional[HttpTransport] = None,
    ):
        """
        Initialize Guardian instance.

        Args:
            api_client: Guardian API client
            consents_client: Rich consents API client
            transport: HTTP transport released by close(), when owned
        """
        self.api_client = api_client
        self.consents_client = consents_client
        self._transport = transport
        self.logger = logging.getLogger(__name__)

    @classmethod
    def new(cls, config: GuardianConfig) -> "Guardian":
        """
        Create a new Guardian instance from configuration.

        Args:
            config: Guardian configuration

        Returns:
            Guardian instance owning its HTTP transport

        Raises:
            ValueError: If configuration is invalid

        Example:
            guardian = Guardian.new(GuardianConfig(domain="tenant.guardian.auth0.com"))
        """
        config.validate()
        client_info = ClientInfo(app_name=config.app_name, app_version=config.app_version)
        transport = HttpTransport(
            client_info=client_info,
            timeout=config.timeout,
            logging_enabled=config.logging_enabled,
        )
        serializer = JsonSerializer()
        api_client = GuardianAPIClient(
            config.base_url,
            transport,
            serializer,
            path_segment=config.path_segment,
            first_party_host_patterns=config.first_party_host_patterns,
            push_service=config.push_service,
        )
        consents_client = RichConsentsAPIClient(transport, config.base_url, serializer)
        return cls(api_client, consents_client, transport)

    def enroll(self, enrollment_data: str, device: CurrentDevice, private_key: Any,
               public_key: Any = None) -> GuardianAPIRequest[Enrollment]:
        """
        Create an enrollment.

        Args:
            enrollment_data: ticket id or ``otpauth://`` URI from the QR code or email link
            device: the local device
            private_key: RSA private key the enrollment will sign with
            public_key: matching public key, derived from ``private_key`` when omitted

        Returns:
            a request whose value is the new Enrollment

        Raises:
            ValidationError: If the enrollment URI is malformed
            InvalidArgumentError: If the key is not an RSA key
        """
        if not enrollment_data or not isinstance(enrollment_data, str):
            raise ValidationError("Enrollment data is required", field='enrollment_data')
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise InvalidArgumentError("Only RSA keys are supported")
        if public_key is None:
            public_key = private_key.public_key()

        ticket = EnrollmentTicket.try_parse(enrollment_data)
        ticket_id = extract_ticket_id(enrollment_data)

        self.logger.debug(f"Enrolling device {device.identifier}")
        request = self.api_client.enroll(
            ticket_id,
            device.identifier,
            device.name,
            device.notification_token,
            public_key,
        )
        return map_request(request, lambda response: create_enrollment(response, device, private_key, ticket))

    def delete(self, enrollment: Enrollment) -> GuardianAPIRequest[None]:
        """
        Delete an enrollment. Discard it once the request succeeds.

        Args:
            enrollment: the enrollment to delete
        """
        self.logger.debug(f"Deleting enrollment {enrollment.id}")
        return self._device(enrollment).delete()

    def update_device(self, enrollment: Enrollment, name: Optional[str] = None,
                      notification_token: Optional[str] = None) -> GuardianAPIRequest[Device]:
        """
        Rename the device or refresh its push notification token.

        Returns:
            a request whose value is the updated Device; pair a token refresh
            with ``enrollment.with_notification_token``
        """
        return self._device(enrollment).update(name=name, notification_token=notification_token)

    def _device(self, enrollment: Enrollment):
        return self.api_client.device_with_key(
            enrollment.id,
            enrollment.device_identifier,
            enrollment.user_id,
            enrollment.signing_key,
        )

    def allow(self, notification: Notification, enrollment: Enrollment) -> GuardianAPIRequest[None]:
        """
        Allow the authentication request of a push notification.

        Raises:
            ValidationError: If the notification is for another enrollment
            SigningError: If the challenge response cannot be signed
        """
        self._check_match(notification, enrollment)
        return self.api_client.allow(
            notification.transaction_token,
            enrollment.device_identifier,
            notification.challenge,
            enrollment.signing_key,
        )

    def reject(self, notification: Notification, enrollment: Enrollment,
               reason: Optional[str] = None) -> GuardianAPIRequest[None]:
        """
        Reject the authentication request of a push notification.

        Args:
            reason: optional reject reason reported to the server
        """
        self._check_match(notification, enrollment)
        return self.api_client.reject(
            notification.transaction_token,
            enrollment.device_identifier,
            notification.challenge,
            enrollment.signing_key,
            reason,
        )

    def fetch_consent(self, notification: Notification,
                      enrollment: Enrollment) -> GuardianAPIRequest[RichConsent]:
        """
        Fetch the rich consent linked to a push notification.

        Raises:
            ValidationError: If the notification is not linked to a consent
        """
        self._check_match(notification, enrollment)
        if not notification.transaction_linking_id:
            raise ValidationError("Notification is not linked to a consent",
                                  field='transaction_linking_id')
        return self.consents_client.fetch(
            notification.transaction_linking_id,
            notification.transaction_token,
            enrollment.signing_key,
            enrollment.public_key,
        )

    @staticmethod
    def _check_match(notification: Notification, enrollment: Enrollment) -> None:
        if not notification.matches(enrollment):
            raise ValidationError("Notification does not belong to this enrollment",
                                  field='enrollment_id', value=notification.enrollment_id)

    @staticmethod
    def get_otp_code(enrollment: Enrollment, now: Optional[float] = None) -> Optional[str]:
        """
        Current TOTP code of an enrollment.

        Returns:
            the code, or None when the enrollment has no TOTP

        Raises:
            InvalidArgumentError: If the secret is not valid Base32 or the
                TOTP parameters are unsupported
        """
        if enrollment.totp is None:
            return None
        totp = TOTP(
            enrollment.totp.algorithm,
            enrollment.totp.secret,
            enrollment.totp.digits,
            enrollment.totp.period,
        )
        return totp.generate() if now is None else totp.generate_at(now)

    @staticmethod
    def parse_notification(payload: Mapping[str, Any]) -> Optional[Notification]:
        """Decode a push notification payload, None when it is not a Guardian notification."""
        return Notification.parse(payload)

    def close(self) -> None:
        """Release the HTTP transport."""
        if self._transport is not None:
            self._transport.close()

    def __enter__(self) -> "Guardian":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
