"""
Configuration loading for oktad.

Settings live in an INI file (default ~/.oktad/config) under an [okta] section;
OKTAD_* environment variables take precedence over the file.
"""

import configparser
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

import click

from .errors import ConfigError

DEFAULT_CONFIG_PATH = '~/.oktad/config'
DEFAULT_SESSION_DURATION = timedelta(hours=2)

ENV_OVERRIDES = {
    'baseUrl': 'OKTAD_BASE_URL',
    'appURL': 'OKTAD_APP_URL',
    'region': 'OKTAD_REGION',
}


@dataclass(frozen=True)
class IdentityConfig:
    base_url: str
    app_url: str
    region: str = None
    session_duration: timedelta = DEFAULT_SESSION_DURATION


def _read_section(path):
    parser = configparser.ConfigParser()
    # Okta keys are camelCase
    parser.optionxform = str

    if path.exists():
        try:
            parser.read(path)
        except configparser.Error as e:
            raise ConfigError("Error reading config file!", detail=str(e))

    if parser.has_section('okta'):
        return dict(parser['okta'])
    return {}


def load_config(config_file=DEFAULT_CONFIG_PATH):
    """Load configuration from the config file, then apply environment overrides"""
    path = Path(config_file).expanduser()
    values = _read_section(path)

    for key, env_var in ENV_OVERRIDES.items():
        if os.getenv(env_var):
            values[key] = os.getenv(env_var)

    missing = [key for key in ('baseUrl', 'appURL') if not values.get(key)]
    if missing:
        raise ConfigError(
            "Error reading config file!",
            detail=f"{path}: missing {', '.join(missing)}"
        )

    session_duration = DEFAULT_SESSION_DURATION
    if values.get('sessionDuration'):
        try:
            session_duration = timedelta(seconds=int(values['sessionDuration']))
        except ValueError:
            raise ConfigError(
                "Error reading config file!",
                detail=f"sessionDuration must be a number of seconds, got {values['sessionDuration']!r}"
            )

    return IdentityConfig(
        base_url=values['baseUrl'].rstrip('/'),
        app_url=values['appURL'],
        region=values.get('region') or None,
        session_duration=session_duration,
    )


def save_config(values, config_file=DEFAULT_CONFIG_PATH):
    """Save configuration to the config file"""
    path = Path(config_file).expanduser()
    parser = configparser.ConfigParser()
    parser.optionxform = str

    if path.exists():
        parser.read(path)

    if not parser.has_section('okta'):
        parser.add_section('okta')

    for key, value in values.items():
        if value:
            parser['okta'][key] = str(value)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            parser.write(f)
        click.echo(f"✅ Configuration saved to {path}")
    except OSError as e:
        click.echo(f"Error saving configuration: {e}", err=True)
