"""Blocking terminal prompts"""

import click

from .errors import UserCancelled


class Prompter:
    def prompt_line(self, message):
        return self._prompt(message, hide_input=False)

    def prompt_password(self, message):
        return self._prompt(message, hide_input=True)

    def _prompt(self, message, hide_input):
        # click raises Abort on Ctrl-C and on EOF
        try:
            return click.prompt(
                message,
                hide_input=hide_input,
                default='',
                show_default=False,
                prompt_suffix='',
            )
        except click.exceptions.Abort:
            raise UserCancelled()
