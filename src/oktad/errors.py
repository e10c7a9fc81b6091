"""
Error taxonomy for oktad.

Every failure the broker can raise derives from OktadError and carries a short
message for the user plus an optional detail for the debug channel.
"""


class OktadError(Exception):
    def __init__(self, message, detail=None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self):
        return self.message


class UserCancelled(OktadError):
    """Raised when the user interrupts a prompt"""

    def __init__(self, message="Cancelled.", detail=None):
        super().__init__(message, detail)


class InvalidInput(OktadError):
    pass


class ConfigError(OktadError):
    pass


class KeychainError(OktadError):
    pass


class ProfileNotFound(OktadError):
    pass


class AuthError(OktadError):
    pass


class PolicyViolation(OktadError):
    pass


class FactorSelectionError(OktadError):
    def __init__(self, message="wrong mfa factor", detail=None):
        super().__init__(message, detail)


class UnsupportedFactorError(OktadError):
    pass


class MfaTimeoutError(OktadError):
    pass


class MfaInvalidCodeError(OktadError):
    pass


class FederationError(OktadError):
    pass


class RoleAssumptionError(OktadError):
    pass


class PersistenceError(OktadError):
    """Credential caching failed; never fatal to a run"""


class LaunchError(OktadError):
    pass
