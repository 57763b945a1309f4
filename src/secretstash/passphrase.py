"""Obtain passwords from the environment or the user."""

import getpass
import os

from secretstash import ConfigurationError

ENV_VARIABLE = "SECRETSTASH_PASSWORD"
MINIMUM_LENGTH = 12


class PasswordPrompt(object):
    """Ask the user for the password protecting a secret store.

    `for_what` describes the store and is shown in the prompt. Entered
    passwords are cached per `for_what`, so several commands in one
    process only ask once. If `double_entry` is True the password must be
    entered twice and be at least `MINIMUM_LENGTH` characters long.
    """

    cache = {}

    def __init__(self, for_what, double_entry=False):
        self.for_what = for_what
        self.double_entry = double_entry

    def get(self):
        from_env = os.environ.get(ENV_VARIABLE)
        if from_env:
            return from_env
        if self.for_what in self.cache:
            return self.cache[self.for_what]
        if self.double_entry:
            phrase = self.ask_twice()
        else:
            phrase = self.ask_once()
        self.cache[self.for_what] = phrase
        return phrase

    def ask_once(self):
        return getpass.getpass('Enter password for %s: ' % self.for_what)

    def ask_twice(self):
        phrase1 = getpass.getpass('Enter password for %s: ' % self.for_what)
        if len(phrase1) < MINIMUM_LENGTH:
            raise ConfigurationError.from_context(
                'password must be at least %s characters long'
                % MINIMUM_LENGTH)
        phrase2 = getpass.getpass(
            'Enter password for %s again: ' % self.for_what)
        if phrase1 != phrase2:
            raise ConfigurationError.from_context('passwords do not match')
        return phrase1
