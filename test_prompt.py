import click
import pytest

from oktad.errors import UserCancelled
from oktad.prompt import Prompter


def test_password_prompt_hides_input(monkeypatch):
    seen = {}

    def fake_prompt(message, **kwargs):
        seen.update(kwargs, message=message)
        return 'hunter2'

    monkeypatch.setattr(click, 'prompt', fake_prompt)

    assert Prompter().prompt_password('Password: ') == 'hunter2'
    assert seen['message'] == 'Password: '
    assert seen['hide_input'] is True


def test_abort_becomes_user_cancelled(monkeypatch):
    def fake_prompt(message, **kwargs):
        raise click.exceptions.Abort()

    monkeypatch.setattr(click, 'prompt', fake_prompt)

    with pytest.raises(UserCancelled):
        Prompter().prompt_line('Username: ')
