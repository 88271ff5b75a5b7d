"""
Shared fixtures.

The settings module reads the environment at import time, so a throw-away
RSA key pair and every required variable are put in place here, before any
application module is imported by the test files.
"""

import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

TEST_PASSPHRASE = "test-passphrase"
REACTOR_PREFIX = "https://reactor.test"


def _generate_key_pair() -> tuple[str, str]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.BestAvailableEncryption(TEST_PASSPHRASE.encode()),
    ).decode()
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return public_pem, private_pem


PUBLIC_KEY_PEM, PRIVATE_KEY_PEM = _generate_key_pair()

os.environ.update(
    {
        "REACTOR_API_PREFIX": REACTOR_PREFIX,
        "REACTOR_AUTH_TOKEN": "reactor-secret",
        "PASSPHRASE": TEST_PASSPHRASE,
        "PUBLIC_KEY_PEM": PUBLIC_KEY_PEM,
        "PRIVATE_KEY_PEM": PRIVATE_KEY_PEM,
        "SLACK_APP_CLIENT_ID": "client-id",
        "SLACK_APP_CLIENT_SECRET": "client-secret",
        "SLACK_API_BASE": "https://slack.test/api",
    }
)


@pytest.fixture(scope="session")
def cipher():
    from connectors.encryption import TokenCipher

    return TokenCipher(PUBLIC_KEY_PEM, PRIVATE_KEY_PEM, TEST_PASSPHRASE)


@pytest.fixture(scope="session")
def key_pair():
    """(public PEM, encrypted private PEM, passphrase) the app is configured with."""
    return PUBLIC_KEY_PEM, PRIVATE_KEY_PEM, TEST_PASSPHRASE
