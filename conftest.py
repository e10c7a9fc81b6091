import base64
import logging
from datetime import datetime, timedelta, timezone

import pytest

from oktad.errors import UserCancelled
from oktad.keychain import SecretStore
from oktad.roles import RoleCredentials

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

BASE_ROLE = 'arn:aws:iam::111111111111:role/OktaBase'
OTHER_ROLE = 'arn:aws:iam::111111111111:role/OktaReadOnly'
PRINCIPAL = 'arn:aws:iam::111111111111:saml-provider/Okta'


class MemoryKeyring:
    """Stand-in for a keyring backend"""

    def __init__(self):
        self.passwords = {}

    def get_password(self, service, key):
        return self.passwords.get((service, key))

    def set_password(self, service, key, value):
        self.passwords[(service, key)] = value


class ScriptedPrompter:
    """Answers prompts from a list; UserCancelled in the list is raised"""

    def __init__(self, answers=()):
        self.answers = list(answers)
        self.messages = []

    def _next(self, message):
        self.messages.append(message)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    prompt_line = _next
    prompt_password = _next


def make_saml(*pairs):
    values = ''.join(
        f'<saml2:AttributeValue>{role},{principal}</saml2:AttributeValue>' for role, principal in pairs
    )
    document = (
        '<saml2p:Response xmlns:saml2p="urn:oasis:names:tc:SAML:2.0:protocol">'
        '<saml2:Assertion xmlns:saml2="urn:oasis:names:tc:SAML:2.0:assertion">'
        '<saml2:AttributeStatement>'
        '<saml2:Attribute Name="https://aws.amazon.com/SAML/Attributes/Role">'
        f'{values}'
        '</saml2:Attribute>'
        '</saml2:AttributeStatement>'
        '</saml2:Assertion>'
        '</saml2p:Response>'
    )
    return base64.b64encode(document.encode()).decode()


def make_credentials(prefix='BASE', expires_in=timedelta(hours=1)):
    return RoleCredentials(
        access_key_id=f'{prefix}KEY',
        secret_access_key=f'{prefix}SECRET',
        session_token=f'{prefix}TOKEN',
        expiration=NOW + expires_in,
    )


@pytest.fixture
def logger():
    return logging.getLogger('oktad.test')


@pytest.fixture
def keyring_backend():
    return MemoryKeyring()


@pytest.fixture
def secret_store(keyring_backend):
    return SecretStore(keyring_backend)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def cancelled():
    return UserCancelled()
