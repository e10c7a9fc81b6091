#!/usr/bin/env python3
"""
oktad CLI
Authenticates with Okta (with step-up MFA), federates into AWS via SAML and
runs a command with the resulting temporary credentials.
"""

import logging
import os
import sys

import click

from . import __version__
from .auth import Authenticator
from .broker import CredentialBroker, TargetRequest
from .cache import CredentialCache
from .config import DEFAULT_CONFIG_PATH, load_config, save_config
from .errors import ConfigError, OktadError, UserCancelled
from .federation import FederationExchange
from .keychain import SecretStore
from .launcher import launch
from .mfa import MfaChallengeHandler
from .okta import OktaClient
from .profiles import AWSProfileManager
from .prompt import Prompter
from .roles import RoleAssumer

logger = logging.getLogger('oktad')


def configure_logging(debug):
    """Send the oktad.* debug channel to stderr when debugging is on"""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(name)s %(message)s'))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def build_broker(config, secret_store, prompter):
    """Wire the pipeline components, each with its own logger"""
    client = OktaClient(config, logger.getChild('okta'))
    mfa_handler = MfaChallengeHandler(client, prompter, logger.getChild('mfa'))
    return CredentialBroker(
        cache=CredentialCache(secret_store, logger.getChild('cache')),
        authenticator=Authenticator(client, prompter, mfa_handler, logger.getChild('auth')),
        federation=FederationExchange(client, secret_store, config, logger.getChild('federation')),
        role_assumer=RoleAssumer(logger.getChild('roles'), region=config.region),
        profile_manager=AWSProfileManager(),
        logger=logger.getChild('broker'),
        region=config.region,
    )


def fail(error, exit_code=1):
    click.echo(error.message, err=True)
    logger.debug("error was %s", error.detail or error, exc_info=error)
    sys.exit(exit_code)


@click.group()
@click.version_option(__version__, prog_name='oktad', message='%(prog)s v%(version)s')
@click.option('--debug', is_flag=True, default=lambda: bool(os.getenv('OKTAD_DEBUG')),
              help='Write diagnostics to stderr (also enabled by OKTAD_DEBUG)')
def cli(debug):
    """oktad

    Get AWS credentials through Okta and run a command with them.
    """
    configure_logging(debug)


@cli.command()
@click.option('--base-url', prompt='Okta base URL', help='Okta org URL, e.g. https://example.okta.com')
@click.option('--app-url', prompt='AWS app URL', help='Embed link of the Okta AWS application')
@click.option('--region', help='AWS region for STS calls (optional)')
@click.option('--config', '-c', 'config_file', default=DEFAULT_CONFIG_PATH, help='Path to config file')
def configure(base_url, app_url, region, config_file):
    """Configure Okta settings"""
    save_config({'baseUrl': base_url, 'appURL': app_url, 'region': region}, config_file)


@cli.command('exec', context_settings={'ignore_unknown_options': True, 'allow_interspersed_args': False})
@click.option('--config', '-c', 'config_file', default=DEFAULT_CONFIG_PATH, help='Path to config file')
@click.option('--force-new', '-f', is_flag=True, help='force new credentials')
@click.option('--profile-name', '-p', help='Profile name to save the credentials to')
@click.argument('target')
@click.argument('command', nargs=-1, type=click.UNPROCESSED)
def exec_command(config_file, force_new, profile_name, target, command):
    """Get credentials for TARGET and run COMMAND with them"""
    logger.debug("loading configuration data")
    try:
        config = load_config(config_file)
    except ConfigError as e:
        fail(e)

    request = TargetRequest(
        target=target,
        command=list(command),
        force_refresh=force_new,
        profile_name=profile_name,
    )

    try:
        with SecretStore.open() as secret_store:
            broker = build_broker(config, secret_store, Prompter())
            result = broker.acquire(request)
    except UserCancelled as e:
        fail(e, exit_code=130)
    except OktadError as e:
        fail(e)

    if not result.from_cache:
        broker.profile_manager.show_credentials_info(result.profile_name, result.credentials)

    logger.debug("Everything looks good; launching your program...")
    try:
        exit_code = launch(result.command, result.credentials)
    except OktadError as e:
        fail(e)
    sys.exit(exit_code)


@cli.command()
@click.option('--config', '-c', 'config_file', default=DEFAULT_CONFIG_PATH, help='Path to config file')
def status(config_file):
    """Show current configuration status"""
    try:
        config = load_config(config_file)
    except ConfigError as e:
        click.echo(f"❌ {e.message} ({e.detail})")
        config = None

    if config:
        click.echo("📋 Current Configuration:")
        click.echo(f"  baseUrl: {config.base_url}")
        click.echo(f"  appURL: {config.app_url}")
        click.echo(f"  region: {config.region or 'Not set'}")

    profile_manager = AWSProfileManager()
    for path in (profile_manager.config_file, profile_manager.credentials_file):
        if path.exists():
            click.echo(f"📁 {path} exists")
        else:
            click.echo(f"❌ {path} not found")

    if config:
        try:
            with SecretStore.open() as secret_store:
                federation = FederationExchange(None, secret_store, config, logger.getChild('federation'))
                session = federation.load_cached_session()
        except OktadError as e:
            click.echo(f"❌ {e.message}")
            return

        if session:
            click.echo(f"🔑 Okta session cached until {session.expires.astimezone():%Y-%m-%d %H:%M:%S %Z}")
        else:
            click.echo("🔑 No usable Okta session cached")


if __name__ == '__main__':
    cli()
