"""
Basic Guardian SDK usage example.

This example demonstrates the fundamental Guardian operations:
- Creating a Guardian instance
- Enrolling the device from a ticket
- Answering a push notification
- Generating TOTP codes
- Removing the enrollment

Set GUARDIAN_DOMAIN (or GUARDIAN_URL) and pass an enrollment ticket or
otpauth:// URI as the first argument.
"""

import logging
import sys
import uuid

from cryptography.hazmat.primitives.asymmetric import rsa

from guardian_sdk import CurrentDevice, FunctionCallback, Guardian, GuardianConfig, GuardianException


def basic_example(enrollment_data: str):
    """Demonstrate basic Guardian usage"""
    print("Basic Guardian Example")
    print("=" * 30)

    # 1. Create configuration
    config = GuardianConfig.from_env()
    config.app_name = "basic-example"
    config.app_version = "1.0"

    # 2. Create Guardian instance
    with Guardian.new(config) as guardian:
        print("✓ Created Guardian instance")

        # 3. Enroll with a fresh device key
        signing_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        device = CurrentDevice(identifier=str(uuid.uuid4()), name="Example device",
                               notification_token=None)
        try:
            enrollment = guardian.enroll(enrollment_data, device, signing_key).execute()
        except GuardianException as e:
            if e.is_enrollment_transaction_not_found():
                print("✗ Enrollment ticket expired or already used")
            else:
                print(f"✗ Enrollment failed: {e}")
            return
        print(f"✓ Enrolled: {enrollment.id} for user {enrollment.user_id}")

        # 4. TOTP code, when the enrollment has one
        code = Guardian.get_otp_code(enrollment)
        print(f"✓ Current code: {code}" if code else "- No TOTP for this enrollment")

        # 5. A push notification as delivered by the push service
        payload = {
            "d": "2024-01-02T03:04:05.678Z",
            "dai": enrollment.id,
            "txtkn": "transaction-token",
            "c": "challenge",
            "sh": config.domain or "localhost",
        }
        notification = Guardian.parse_notification(payload)
        if notification is not None:
            pending = guardian.allow(notification, enrollment).start(FunctionCallback(
                on_success=lambda _: print("✓ Login allowed"),
                on_failure=lambda e: print(f"- Allow failed: {e}"),
            ))
            pending.exception(30)

        # 6. Remove the enrollment
        try:
            guardian.delete(enrollment).execute()
            print("✓ Enrollment deleted")
        except GuardianException as e:
            print(f"✗ Delete failed: {e}")

    print("\n✓ Basic example completed successfully!")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) < 2:
        print("usage: basic_usage.py <enrollment ticket or otpauth URI>")
        sys.exit(1)
    basic_example(sys.argv[1])
