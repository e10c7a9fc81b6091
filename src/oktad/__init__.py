"""oktad

Okta-to-AWS credential broker: logs in to Okta with step-up MFA, federates
into AWS through SAML and runs commands with short-lived credentials, caching
the Okta session and derived credentials between runs.

Main components:
- broker: the credential-acquisition pipeline
- cli: command-line entry point
"""

__version__ = "0.7.0"

from .broker import BrokerResult, CredentialBroker, TargetRequest  # noqa: E402
from .roles import RoleCredentials  # noqa: E402

__all__ = [
    "BrokerResult",
    "CredentialBroker",
    "RoleCredentials",
    "TargetRequest",
]
