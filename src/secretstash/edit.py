"""Edit secrets with an external editor."""

import logging
import shlex
import subprocess
import tempfile

import secretstash.store
from secretstash import EditorError, SecretExistsError
from secretstash.config import Config

log = logging.getLogger(__name__)


class Editor(object):
    """Run an editor command over a temporary cleartext file.

    The text is written with one trailing newline, which is removed again
    after editing (editors tend to add one).
    """

    def __init__(self, editor_cmd: str):
        self.editor_cmd = editor_cmd

    def edit(self, cleartext: str) -> str:
        with tempfile.NamedTemporaryFile(
            prefix="edit", suffix=".txt", mode="w+", encoding="utf-8"
        ) as clearfile:
            clearfile.write(cleartext + "\n")
            clearfile.flush()

            args = self.editor_cmd + " " + shlex.quote(clearfile.name)
            log.debug("Running editor with command: %s", args)
            try:
                subprocess.check_call(args, shell=True)
            except subprocess.CalledProcessError as e:
                raise EditorError.from_context(
                    self.editor_cmd, exitcode=e.returncode
                )
            except OSError as e:
                raise EditorError.from_context(self.editor_cmd, error=str(e))

            with open(clearfile.name, "r", encoding="utf-8") as new_clearfile:
                edited = new_clearfile.read()

        if edited.endswith("\n"):
            edited = edited[:-1]
        return edited


def edit_secret(
    config: Config, name: str, editor: Editor, create: bool = False
) -> bool:
    """Let the user edit secret `name` and store the result.

    With `create` the secret must not exist yet and editing starts from an
    empty text. Otherwise the secret must exist. Returns whether the
    secret was written. Editor failures leave the store untouched.

    """
    if create:
        if secretstash.store.exists(config, name):
            raise SecretExistsError.from_context(
                name, secretstash.store.path(config, name)
            )
        original = None
        cleartext = ""
    else:
        original = cleartext = secretstash.store.fetch(config, name)

    cleartext = editor.edit(cleartext)
    if cleartext == original:
        log.debug("No changes to %s, not updating", name)
        return False
    secretstash.store.put(config, name, cleartext)
    return True
