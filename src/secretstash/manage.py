"""Command line operations on a secret store."""

import os
import sys

import secretstash.store
from secretstash._output import output
from secretstash.config import Config
from secretstash.edit import Editor, edit_secret
from secretstash.passphrase import PasswordPrompt


def default_app():
    return os.path.basename(os.getcwd())


def load_config(
    environment,
    prefix,
    app=None,
    config_file=None,
    cipher=None,
    key_derivation=None,
    priv_path=None,
    double_entry=False,
):
    app = app or default_app()
    password = PasswordPrompt(
        f"{app} ({prefix}/{environment})", double_entry=double_entry
    ).get()
    return Config.from_file(
        app,
        environment,
        prefix,
        path=config_file,
        password=password,
        cipher=cipher,
        key_derivation=key_derivation,
        priv_path=priv_path,
    )


def create(environment, name, editor, **kw):
    """Create a new secret with the editor."""
    config = load_config(environment, double_entry=True, **kw)
    edit_secret(config, name, Editor(editor), create=True)
    return 0


def edit(environment, name, editor, **kw):
    """Edit an existing secret with the editor."""
    config = load_config(environment, **kw)
    if not edit_secret(config, name, Editor(editor)):
        output.annotate("No changes. Not updating.")
    return 0


def show(environment, name, **kw):
    """Decrypt a secret and write it to stdout."""
    config = load_config(environment, **kw)
    cleartext = secretstash.store.fetch(config, name)
    sys.stdout.write(cleartext)
    if not cleartext.endswith("\n"):
        sys.stdout.write("\n")
    sys.stdout.flush()
    return 0


def insert(environment, name, **kw):
    """Store the text read from stdin as a secret."""
    config = load_config(environment, **kw)
    cleartext = sys.stdin.read()
    if cleartext.endswith("\n"):
        cleartext = cleartext[:-1]
    secretstash.store.put(config, name, cleartext)
    return 0


def delete(environment, name, **kw):
    config = load_config(environment, **kw)
    secretstash.store.delete(config, name)
    return 0


def list_secrets(environment, **kw):
    """Print the names of all secrets in an environment."""
    config = load_config(environment, **kw)
    for name in secretstash.store.list_names(config):
        print(name)
    return 0
