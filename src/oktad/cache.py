"""Expiry-aware cache of derived role credentials, kept in the keychain"""

import json
from datetime import datetime, timezone

from .errors import PersistenceError
from .roles import RoleCredentials

CREDS_KEY_PREFIX = 'creds:'


def _utcnow():
    return datetime.now(timezone.utc)


class CredentialCache:
    def __init__(self, secret_store, logger, clock=_utcnow):
        self.secret_store = secret_store
        self.logger = logger
        self.clock = clock

    def try_load(self, target_name, force_refresh=False):
        """Return cached credentials for target_name, or None on a miss"""
        if force_refresh:
            self.logger.debug("forced refresh, ignoring cached credentials for %s", target_name)
            return None

        blob = self.secret_store.get(CREDS_KEY_PREFIX + target_name)
        if not blob:
            self.logger.debug("no cached credentials for %s", target_name)
            return None

        try:
            record = json.loads(blob)
            credentials = RoleCredentials(
                access_key_id=record['access_key_id'],
                secret_access_key=record['secret_access_key'],
                session_token=record['session_token'],
                expiration=datetime.fromisoformat(record['expiration']),
            )
            if credentials.expiration.tzinfo is None:
                raise ValueError("expiration has no timezone")
        except (ValueError, KeyError, TypeError) as e:
            self.logger.debug("cached credentials for %s unreadable: %s", target_name, e)
            return None

        if credentials.expiration <= self.clock():
            self.logger.debug("cached credentials for %s expired at %s", target_name, credentials.expiration)
            return None

        return credentials

    def store(self, name, credentials):
        """Replace the cached credentials stored under name"""
        record = {
            'access_key_id': credentials.access_key_id,
            'secret_access_key': credentials.secret_access_key,
            'session_token': credentials.session_token,
            'expiration': credentials.expiration.isoformat(),
        }
        try:
            blob = json.dumps(record)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Could not encode credentials for {name}", detail=str(e))
        self.secret_store.set(CREDS_KEY_PREFIX + name, blob)
