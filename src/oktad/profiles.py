"""Reading account profiles from, and writing credentials to, the AWS CLI files"""

import configparser
from dataclasses import dataclass
from pathlib import Path

import click

from .errors import ConfigError, PersistenceError, ProfileNotFound


@dataclass(frozen=True)
class AccountProfile:
    name: str
    role_arn: str
    base_role_arn: str = None
    region: str = None
    duration_seconds: int = None


class AWSProfileManager:
    def __init__(self, aws_dir=None):
        self.aws_dir = Path(aws_dir) if aws_dir else Path.home() / '.aws'
        self.credentials_file = self.aws_dir / 'credentials'
        self.config_file = self.aws_dir / 'config'

    @staticmethod
    def _section_name(profile_name):
        return f'profile {profile_name}' if profile_name != 'default' else 'default'

    def read_profile(self, profile_name):
        """Read [profile <name>] from the AWS config file"""
        config = configparser.ConfigParser()
        if self.config_file.exists():
            try:
                config.read(self.config_file)
            except configparser.Error as e:
                raise ConfigError("Error reading your AWS profile!", detail=str(e))

        section = self._section_name(profile_name)
        if section not in config:
            raise ProfileNotFound(f"AWS profile {profile_name} not found", detail=str(self.config_file))

        values = config[section]
        if not values.get('role_arn'):
            raise ConfigError(
                "Error reading your AWS profile!",
                detail=f"profile {profile_name} has no role_arn"
            )

        duration = values.get('duration_seconds')
        try:
            duration = int(duration) if duration else None
        except ValueError:
            raise ConfigError(
                "Error reading your AWS profile!",
                detail=f"profile {profile_name} has a non-numeric duration_seconds"
            )

        return AccountProfile(
            name=profile_name,
            role_arn=values['role_arn'],
            base_role_arn=values.get('base_role_arn') or None,
            region=values.get('region') or None,
            duration_seconds=duration,
        )

    def update_profile(self, profile_name, credentials, region=None):
        """Update AWS credentials profile"""
        try:
            self.aws_dir.mkdir(exist_ok=True)

            credentials_config = configparser.ConfigParser()
            if self.credentials_file.exists():
                credentials_config.read(self.credentials_file)

            if profile_name not in credentials_config:
                credentials_config.add_section(profile_name)

            credentials_config[profile_name]['aws_access_key_id'] = credentials.access_key_id
            credentials_config[profile_name]['aws_secret_access_key'] = credentials.secret_access_key
            credentials_config[profile_name]['aws_session_token'] = credentials.session_token

            with open(self.credentials_file, 'w') as f:
                credentials_config.write(f)

            if not region:
                return

            # Update config file for region
            config_config = configparser.ConfigParser()
            if self.config_file.exists():
                config_config.read(self.config_file)

            profile_section = self._section_name(profile_name)
            if profile_section not in config_config:
                config_config.add_section(profile_section)

            config_config[profile_section]['region'] = region

            with open(self.config_file, 'w') as f:
                config_config.write(f)
        except (OSError, configparser.Error) as e:
            raise PersistenceError(f"Could not update AWS profile {profile_name}", detail=str(e))

    def show_credentials_info(self, profile_name, credentials):
        """Display credentials information"""
        click.echo(f"✅ Updated AWS profile: {profile_name}")
        local_expiration = credentials.expiration.astimezone()
        click.echo(f"🕒 Credentials expire at: {local_expiration.strftime('%Y-%m-%d %H:%M:%S %Z')}")
