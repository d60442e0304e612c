"""
Shared fixtures: RSA keys, a local Guardian server and an HTTP transport.
"""

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from guardian_sdk.networking.transport import HttpTransport
from mock_web_service import MockWebService


@pytest.fixture(scope="session")
def rsa_key():
    """Device signing key"""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    """A second, unrelated RSA key"""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def ec_key():
    """A key type Guardian cannot sign with"""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def mock_service():
    """Running local Guardian server"""
    service = MockWebService()
    service.start()
    yield service
    service.shutdown()


@pytest.fixture
def transport():
    """HTTP transport closed after the test"""
    instance = HttpTransport(language="en-US")
    yield instance
    instance.close()
