"""Primary Okta login and the step-up MFA that must follow it"""

import click

from .errors import AuthError, InvalidInput, PolicyViolation
from .mfa import select_factor
from .okta import LoginStatus


class Authenticator:
    def __init__(self, client, prompter, mfa_handler, logger, echo=click.echo):
        self.client = client
        self.prompter = prompter
        self.mfa_handler = mfa_handler
        self.logger = logger
        self.echo = echo

    def read_credentials(self):
        """Prompt for username and password"""
        username = self.prompter.prompt_line("Username: ")
        password = self.prompter.prompt_password("Password: ")

        if not username or not password:
            raise InvalidInput("Must supply a username and password")

        return username, password

    def login(self, username, password):
        """Authenticate with Okta, insisting that step-up MFA is offered"""
        result = self.client.primary_auth(username, password)

        if result.status is LoginStatus.FAILED:
            raise AuthError(
                "Error authenticating with Okta! Maybe your username or password are wrong.",
                detail=result.summary
            )

        if result.status is LoginStatus.SUCCESS:
            raise PolicyViolation("MFA required to use this tool")

        if not result.factors:
            raise AuthError("Error processing okta response!", detail="MFA factors not present in response")

        self.logger.debug("login requires MFA, %d factor(s) offered", len(result.factors))
        return result

    def session_token_from_login(self):
        """Run the full interactive login and return an Okta session token"""
        username, password = self.read_credentials()
        result = self.login(username, password)

        factor = select_factor(result.factors, self.prompter, echo=self.echo)
        self.logger.debug("selected factor %s", factor)

        return self.mfa_handler.verify(result.state_token, factor)
