"""Secret store adapter backed by the system keyring"""

from contextlib import contextmanager

import keyring
from keyring.errors import KeyringError

from .errors import KeychainError, PersistenceError

APPNAME = 'oktad'


class SecretStore:
    def __init__(self, backend, service=APPNAME):
        self.backend = backend
        self.service = service

    @classmethod
    @contextmanager
    def open(cls, service=APPNAME, backend=None):
        """Acquire the keychain for the lifetime of one invocation"""
        if backend is None:
            try:
                backend = keyring.get_keyring()
            except KeyringError as e:
                raise KeychainError("Failed to get keychain access", detail=str(e))

        store = cls(backend, service)
        try:
            yield store
        finally:
            store.backend = None

    def get(self, key):
        """Return the stored blob for key, or None when absent or unreadable"""
        try:
            return self.backend.get_password(self.service, key) or None
        except KeyringError:
            return None

    def set(self, key, blob):
        try:
            self.backend.set_password(self.service, key, blob)
        except KeyringError as e:
            raise PersistenceError(f"Could not write {key} to the keychain", detail=str(e))
