"""Launching the user's command with credentials in its environment"""

import os
import subprocess

from .errors import LaunchError


def credential_environment(credentials, base_env=None):
    env = dict(os.environ if base_env is None else base_env)
    env['AWS_ACCESS_KEY_ID'] = credentials.access_key_id
    env['AWS_SECRET_ACCESS_KEY'] = credentials.secret_access_key
    env['AWS_SESSION_TOKEN'] = credentials.session_token
    # older SDKs only read the legacy name
    env['AWS_SECURITY_TOKEN'] = credentials.session_token
    return env


def launch(command, credentials, run=subprocess.run):
    """Run command with credentials injected and return its exit status"""
    if not command:
        raise LaunchError("Hey, that command won't actually do anything.\n\nSorry.")

    try:
        completed = run(list(command), env=credential_environment(credentials))
    except OSError as e:
        raise LaunchError(f"Error launching program: {e}", detail=repr(e))
    return completed.returncode
