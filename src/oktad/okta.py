"""
Okta API client.

Wraps the three identity-provider calls the broker needs: primary
authentication, factor verification and fetching the AWS app's SAML form.
"""

from dataclasses import dataclass, field
from enum import Enum

import requests
from bs4 import BeautifulSoup

from .errors import AuthError, FederationError
from .mfa import VerifyResult, VerifyStatus, parse_factor

SESSION_COOKIE_NAME = 'sid'
REQUEST_TIMEOUT = 30


class LoginStatus(Enum):
    SUCCESS = 'SUCCESS'
    MFA_REQUIRED = 'MFA_REQUIRED'
    FAILED = 'FAILED'


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    session_token: str = None
    state_token: str = None
    factors: tuple = field(default_factory=tuple)
    summary: str = ''


def _error_summary(response):
    try:
        return response.json().get('errorSummary') or response.reason
    except ValueError:
        return response.reason


def extract_saml_response(html):
    """Pull the SAMLResponse form value out of an Okta app page"""
    soup = BeautifulSoup(html, 'html.parser')
    for input_tag in soup.find_all('input'):
        if input_tag.get('name') == 'SAMLResponse':
            return input_tag.get('value') or ''
    return ''


class OktaClient:
    def __init__(self, config, logger, session_factory=requests.Session):
        self.config = config
        self.logger = logger
        self.session_factory = session_factory

    def _post(self, path, payload):
        url = self.config.base_url + path
        self.logger.debug("POST %s", url)
        try:
            with self.session_factory() as session:
                return session.post(
                    url,
                    json=payload,
                    headers={'Accept': 'application/json'},
                    timeout=REQUEST_TIMEOUT,
                )
        except requests.RequestException as e:
            raise AuthError("Error talking to Okta!", detail=str(e))

    def primary_auth(self, username, password):
        """Performs primary auth against Okta"""
        response = self._post('/api/v1/authn', {'username': username, 'password': password})

        if not response.ok:
            return LoginResult(LoginStatus.FAILED, summary=_error_summary(response))

        try:
            body = response.json()
        except ValueError:
            return LoginResult(LoginStatus.FAILED, summary="response was not JSON")

        status = body.get('status')
        if status == 'SUCCESS':
            return LoginResult(LoginStatus.SUCCESS, session_token=body.get('sessionToken'))

        if status == 'MFA_REQUIRED':
            factors = body.get('_embedded', {}).get('factors', [])
            return LoginResult(
                LoginStatus.MFA_REQUIRED,
                state_token=body.get('stateToken'),
                factors=tuple(parse_factor(f) for f in factors),
            )

        return LoginResult(LoginStatus.FAILED, summary=f"unexpected status {status!r}")

    def verify_factor(self, state_token, factor, pass_code=None):
        """Verify a factor; push verification is polled by calling this repeatedly"""
        payload = {'stateToken': state_token}
        if pass_code is not None:
            payload['passCode'] = pass_code

        response = self._post(f'/api/v1/authn/factors/{factor.factor_id}/verify', payload)

        # Okta answers a wrong passcode with 403 E0000068
        if response.status_code == 403:
            return VerifyResult(VerifyStatus.REJECTED, summary=_error_summary(response))
        if not response.ok:
            raise AuthError("Error doing MFA!", detail=_error_summary(response))

        try:
            body = response.json()
        except ValueError:
            raise AuthError("Error doing MFA!", detail="response was not JSON")

        if body.get('status') == 'SUCCESS':
            return VerifyResult(VerifyStatus.SUCCESS, session_token=body.get('sessionToken'))

        factor_result = body.get('factorResult', 'WAITING')
        try:
            return VerifyResult(VerifyStatus(factor_result), summary=factor_result)
        except ValueError:
            return VerifyResult(VerifyStatus.REJECTED, summary=factor_result)

    def fetch_saml(self, session_token=None, cookie=None):
        """
        Fetch the AWS app page and return (SAMLResponse, sid cookie).

        Either a one-time session token or an existing sid cookie authorises
        the request. The returned cookie is the one Okta set, if any.
        """
        params = {}
        with self.session_factory() as session:
            if session_token:
                params['onetimetoken'] = session_token
            if cookie is not None:
                session.cookies.set(SESSION_COOKIE_NAME, cookie.value, domain=cookie.domain)

            self.logger.debug("GET %s", self.config.app_url)
            try:
                response = session.get(self.config.app_url, params=params, timeout=REQUEST_TIMEOUT)
                response.raise_for_status()
            except requests.RequestException as e:
                raise FederationError("Error getting SAML assertion", detail=str(e))

            fresh_cookie = None
            for candidate in session.cookies:
                if candidate.name == SESSION_COOKIE_NAME:
                    fresh_cookie = candidate

            return extract_saml_response(response.text), fresh_cookie
