"""
Step-up MFA: factor selection and challenge handling.

Okta factors are modelled as a closed set of variants. Push and TOTP are the
kinds oktad knows how to drive; anything else parses to UnsupportedFactor and
fails before any network call is made.
"""

import time
from dataclasses import dataclass
from enum import Enum

import click

from .errors import (
    AuthError,
    FactorSelectionError,
    MfaInvalidCodeError,
    MfaTimeoutError,
    UnsupportedFactorError,
)

PUSH_MAX_ATTEMPTS = 15
PUSH_POLL_INTERVAL = 2
TOTP_MAX_ATTEMPTS = 2

FACTOR_TYPE_PUSH = 'push'
FACTOR_TYPE_TOTP = 'token:software:totp'


@dataclass(frozen=True)
class MfaFactor:
    factor_id: str
    factor_type: str
    provider: str = ''

    @property
    def label(self):
        return f"Unsupported factor ({self.factor_type})"


@dataclass(frozen=True)
class PushFactor(MfaFactor):
    @property
    def label(self):
        return "Push notification"


@dataclass(frozen=True)
class TotpFactor(MfaFactor):
    @property
    def label(self):
        if self.provider == 'GOOGLE':
            return "Google Authenticator"
        return "Okta Verify"


@dataclass(frozen=True)
class UnsupportedFactor(MfaFactor):
    pass


def parse_factor(data):
    """Build the factor variant for one entry of Okta's _embedded.factors"""
    factor_type = data.get('factorType', '')
    kwargs = {
        'factor_id': data.get('id', ''),
        'factor_type': factor_type,
        'provider': data.get('provider', ''),
    }
    if factor_type == FACTOR_TYPE_PUSH:
        return PushFactor(**kwargs)
    if factor_type == FACTOR_TYPE_TOTP:
        return TotpFactor(**kwargs)
    return UnsupportedFactor(**kwargs)


class VerifyStatus(Enum):
    SUCCESS = 'SUCCESS'
    WAITING = 'WAITING'
    REJECTED = 'REJECTED'
    TIMEOUT = 'TIMEOUT'


@dataclass(frozen=True)
class VerifyResult:
    status: VerifyStatus
    session_token: str = None
    summary: str = ''


def select_factor(factors, prompter, echo=click.echo):
    """Pick the factor to challenge, asking the user when there is a choice"""
    if not factors:
        raise AuthError("Error processing okta response!", detail="MFA factors not present in response")

    if len(factors) == 1:
        return factors[0]

    for index, factor in enumerate(factors):
        echo(f"[{index}] {factor.label}")

    answer = prompter.prompt_line("Select your second factor: ")
    try:
        index = int(answer.strip())
    except ValueError:
        raise FactorSelectionError(detail=f"not a number: {answer!r}")

    if index < 0 or index >= len(factors):
        raise FactorSelectionError(detail=f"index {index} out of range for {len(factors)} factors")

    return factors[index]


class MfaChallengeHandler:
    def __init__(self, client, prompter, logger, sleep=time.sleep, echo=click.echo):
        self.client = client
        self.prompter = prompter
        self.logger = logger
        self.sleep = sleep
        self.echo = echo

    def verify(self, state_token, factor):
        """Drive the challenge for factor and return the resulting session token"""
        self.logger.debug("verifying MFA with factor %s", factor)

        if isinstance(factor, PushFactor):
            return self._verify_push(state_token, factor)
        if isinstance(factor, TotpFactor):
            return self._verify_totp(state_token, factor)

        raise UnsupportedFactorError(
            "Error doing MFA!",
            detail=f"unsupported factor type {factor.factor_type!r}"
        )

    def _verify_push(self, state_token, factor):
        for attempt in range(1, PUSH_MAX_ATTEMPTS + 1):
            result = self.client.verify_factor(state_token, factor)

            if result.status is VerifyStatus.SUCCESS:
                return result.session_token
            if result.status is VerifyStatus.REJECTED:
                raise AuthError("Push notification was rejected", detail=result.summary)
            if result.status is VerifyStatus.TIMEOUT:
                raise MfaTimeoutError("Push notification timed out", detail=result.summary)

            self.logger.debug("push not yet acked (attempt %d of %d)", attempt, PUSH_MAX_ATTEMPTS)
            if attempt < PUSH_MAX_ATTEMPTS:
                self.echo("Push not yet acked, sleeping")
                self.sleep(PUSH_POLL_INTERVAL)

        raise MfaTimeoutError(
            "Error performing MFA auth!",
            detail=f"push not acknowledged after {PUSH_MAX_ATTEMPTS} attempts"
        )

    def _verify_totp(self, state_token, factor):
        self.echo("Your account requires MFA; please enter a token.")

        for attempt in range(1, TOTP_MAX_ATTEMPTS + 1):
            code = self.prompter.prompt_line("MFA token: ")
            result = self.client.verify_factor(state_token, factor, pass_code=code.strip())

            if result.status is VerifyStatus.SUCCESS:
                return result.session_token

            self.logger.debug("TOTP attempt %d rejected: %s", attempt, result.summary)
            if attempt < TOTP_MAX_ATTEMPTS:
                self.echo("Invalid MFA code, please try again.")

        raise MfaInvalidCodeError(
            "Error performing MFA auth!",
            detail=f"invalid TOTP code after {TOTP_MAX_ATTEMPTS} attempts"
        )
