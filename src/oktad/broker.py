"""
The credential-acquisition pipeline.

CredentialBroker.acquire walks the state machine for one invocation:

    cache hit?  -> done
    cached Okta session -> SAML assertion
    otherwise login + MFA -> SAML assertion
    AssumeRoleWithSAML (-> AssumeRole when a destination profile exists)
    persist to ~/.aws/credentials and the credential cache

Nothing is persisted unless the whole chain succeeds.
"""

from dataclasses import dataclass, field

import click

from .errors import FederationError, PersistenceError, ProfileNotFound

BASE_PROFILE_CREDS = '__oktad_base_creds'


@dataclass(frozen=True)
class TargetRequest:
    target: str
    command: list = field(default_factory=list)
    force_refresh: bool = False
    profile_name: str = None


@dataclass(frozen=True)
class BrokerResult:
    credentials: object
    profile_name: str
    command: list
    from_cache: bool = False


class CredentialBroker:
    def __init__(self, cache, authenticator, federation, role_assumer, profile_manager,
                 logger, region=None, echo=click.echo):
        self.cache = cache
        self.authenticator = authenticator
        self.federation = federation
        self.role_assumer = role_assumer
        self.profile_manager = profile_manager
        self.logger = logger
        self.region = region
        self.echo = echo

    def resolve_target(self, request):
        """
        Look up the AWS profile for the request's target.

        Returns (account_profile, target_name, command). A missing profile
        means the user wants to run in their base account: the target word is
        really the start of the command, and the second hop is skipped.
        """
        try:
            account_profile = self.profile_manager.read_profile(request.target)
        except ProfileNotFound as e:
            self.logger.debug("error reading AWS profile: %s (%s)", e, e.detail)
            self.echo(
                f"We couldn't find an AWS profile named {request.target},\n"
                "so we will AssumeRole into your base account."
            )
            return None, BASE_PROFILE_CREDS, [request.target] + list(request.command)

        return account_profile, request.target, list(request.command)

    def acquire(self, request):
        account_profile, target_name, command = self.resolve_target(request)

        cached = self.cache.try_load(target_name, request.force_refresh)
        if cached is not None:
            self.logger.debug("found cached credentials, going to use them")
            return BrokerResult(cached, target_name, command, from_cache=True)

        assertion = self.obtain_assertion()
        credentials = self.role_assumer.assume_chain(account_profile, assertion)

        profile_name = request.profile_name or target_name
        self.persist(profile_name, credentials)

        return BrokerResult(credentials, profile_name, command)

    def obtain_assertion(self):
        """Prefer the cached Okta session; fall back to a fresh login once"""
        cached_session = self.federation.load_cached_session()
        if cached_session is not None:
            try:
                return self.federation.exchange_cookie(cached_session)
            except FederationError as e:
                self.logger.debug("failed to get session from existing cookie %s (%s)", e, e.detail)

        session_token = self.authenticator.session_token_from_login()
        try:
            return self.federation.exchange_token(session_token)
        except FederationError as e:
            raise FederationError("Fatal error getting saml", detail=e.detail or e.message)

    def persist(self, profile_name, credentials):
        try:
            self.profile_manager.update_profile(profile_name, credentials, self.region)
        except PersistenceError as e:
            self.logger.debug("err storing aws credentials, %s (%s)", e, e.detail)

        try:
            self.cache.store(profile_name, credentials)
        except PersistenceError as e:
            self.logger.debug("err storing credentials, %s (%s)", e, e.detail)
