"""
Federation exchange: turning an Okta session into a SAML assertion.

A fresh session token and a cached sid cookie are the two ways in. The sid
cookie Okta sets on the way out is cached in the keychain so the next run can
skip the login prompts while the Okta session is still alive.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime, timezone

from .errors import FederationError, PersistenceError

SESSION_COOKIE = '__oktad_session_cookie'


def _utcnow():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FederationAssertion:
    raw: str
    document: bytes

    @classmethod
    def from_raw(cls, raw):
        if not raw:
            raise FederationError("Error parsing SAML response", detail="SAMLResponse missing or empty")
        try:
            document = base64.b64decode(raw)
        except (binascii.Error, ValueError) as e:
            raise FederationError("Error parsing SAML response", detail=str(e))
        return cls(raw=raw, document=document)


@dataclass(frozen=True)
class CachedSession:
    value: str
    domain: str
    expires: datetime

    def is_expired(self, now=None):
        return self.expires <= (now or _utcnow())


def encode_session(session):
    payload = {
        'value': session.value,
        'domain': session.domain,
        'expires': session.expires.isoformat(),
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def decode_session(blob):
    """Inverse of encode_session; raises ValueError on anything malformed"""
    try:
        payload = json.loads(base64.b64decode(blob.encode()).decode())
        expires = datetime.fromisoformat(payload['expires'])
        return CachedSession(value=payload['value'], domain=payload.get('domain', ''), expires=expires)
    except (binascii.Error, UnicodeDecodeError, KeyError, TypeError) as e:
        raise ValueError(f"malformed session cookie: {e}")


class FederationExchange:
    def __init__(self, client, secret_store, config, logger, clock=_utcnow):
        self.client = client
        self.secret_store = secret_store
        self.config = config
        self.logger = logger
        self.clock = clock

    def exchange_token(self, session_token):
        """Exchange a fresh session token for an assertion and cache the Okta session"""
        raw, cookie = self.client.fetch_saml(session_token=session_token)
        assertion = FederationAssertion.from_raw(raw)

        if cookie is not None:
            try:
                self.save_session(self._session_from_cookie(cookie))
            except PersistenceError as e:
                self.logger.debug("err storing session cookie, %s (%s)", e, e.detail)
        return assertion

    def exchange_cookie(self, cached_session):
        """Exchange a cached sid cookie for an assertion"""
        raw, _ = self.client.fetch_saml(cookie=cached_session)
        return FederationAssertion.from_raw(raw)

    def load_cached_session(self):
        """Return the cached Okta session, or None if absent, unreadable or expired"""
        blob = self.secret_store.get(SESSION_COOKIE)
        if not blob:
            return None

        try:
            session = decode_session(blob)
        except ValueError as e:
            self.logger.debug("failed to read session cookie %s", e)
            return None

        if session.is_expired(self.clock()):
            self.logger.debug("cached session cookie expired at %s", session.expires)
            return None
        return session

    def save_session(self, session):
        self.secret_store.set(SESSION_COOKIE, encode_session(session))

    def _session_from_cookie(self, cookie):
        if cookie.expires:
            expires = datetime.fromtimestamp(cookie.expires, timezone.utc)
        else:
            expires = self.clock() + self.config.session_duration
        return CachedSession(value=cookie.value, domain=cookie.domain, expires=expires)
