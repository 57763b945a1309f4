import os.path
from typing import Optional

from ._output import output

with open(os.path.dirname(__file__) + "/version.txt") as f:
    __version__ = f.read().strip()


class ReportingException(Exception):
    """Exceptions that support user-readable reporting."""

    def __str__(self):
        raise NotImplementedError()

    def report(self):
        raise NotImplementedError()


class ConfigurationError(ReportingException):
    """A configuration could not be resolved or is unusable."""

    message: str

    @classmethod
    def from_context(cls, message):
        self = cls()
        self.message = message
        return self

    def __str__(self):
        return str(self.message)

    def report(self):
        output.error(self.message)


class InvalidSecretName(ConfigurationError):
    """A secret name would escape or confuse the namespace directory."""

    name: str

    @classmethod
    def from_context(cls, name):
        self = cls()
        self.name = name
        self.message = f"Invalid secret name: {name!r}"
        return self

    def report(self):
        output.error("Invalid secret name")
        output.tabular("name", repr(self.name), red=True)
        output.annotate(
            "Names must be non-empty, must not contain path separators "
            "and must not start with a dot."
        )


class FormatError(ReportingException):
    """A packed blob is truncated, corrupt or has an unexpected tag."""

    message: str

    @classmethod
    def from_context(cls, message):
        self = cls()
        self.message = message
        return self

    def __str__(self):
        return str(self.message)

    def report(self):
        output.error(self.message)
        output.annotate(
            "The secret was written with a different cipher or is corrupt."
        )


class TagMismatchError(FormatError):
    """A blob was written by a different cipher than the one reading it."""

    expected: str
    found: Optional[str]

    @classmethod
    def from_context(cls, expected, found):
        self = cls()
        self.expected = expected
        self.found = found
        self.message = f"Expected tag {expected!r}, found {found!r}"
        return self

    def report(self):
        output.error("Secret was written by a different cipher")
        output.tabular("expected", self.expected, red=True)
        output.tabular("found", str(self.found), red=True)


class AuthenticationError(ReportingException):
    """Ciphertext failed integrity verification."""

    cipher: str
    reason: str

    @classmethod
    def from_context(cls, cipher, reason="integrity check failed"):
        self = cls()
        self.cipher = cipher
        self.reason = reason
        return self

    def __str__(self):
        return f"Cannot decrypt {self.cipher} secret: {self.reason}"

    def report(self):
        output.error("Secret could not be authenticated")
        output.tabular("cipher", self.cipher, red=True)
        output.tabular("reason", self.reason, red=True)
        output.annotate(
            "Either the key or password is wrong, or the file was "
            "corrupted or tampered with."
        )


class SecretNotFoundError(ReportingException, KeyError):
    """There is no secret with this name in the namespace."""

    name: str
    path: str

    @classmethod
    def from_context(cls, name, path):
        self = cls()
        self.name = name
        self.path = str(path)
        return self

    def __str__(self):
        return f"Secret not found: {self.name} (looked at {self.path})"

    def report(self):
        output.error(f"Secret not found: {self.name}")
        output.tabular("path", self.path)


class SecretExistsError(ReportingException):
    """A secret that is about to be created exists already."""

    name: str
    path: str

    @classmethod
    def from_context(cls, name, path):
        self = cls()
        self.name = name
        self.path = str(path)
        return self

    def __str__(self):
        return f"Secret already exists: {self.name} ({self.path})"

    def report(self):
        output.error(f"Secret already exists: {self.name}")
        output.tabular("path", self.path)
        output.annotate("Use `edit` to change an existing secret.")


class StorageError(ReportingException, OSError):
    """Reading or writing a secret file failed."""

    operation: str
    path: str
    error: str

    @classmethod
    def from_context(cls, operation, path, error):
        self = cls()
        self.operation = operation
        self.path = str(path)
        self.error = f"{error.__class__.__name__}: {error}"
        return self

    def __str__(self):
        return f"Cannot {self.operation} {self.path}: {self.error}"

    def report(self):
        output.error(f"Cannot {self.operation} secret file")
        output.tabular("path", self.path, red=True)
        output.tabular("message", self.error, separator=":\n")


class EditorError(ReportingException):
    """The external editor could not be run or failed."""

    command: str
    exitcode: Optional[str]
    error: str

    @classmethod
    def from_context(cls, command, exitcode=None, error=""):
        self = cls()
        self.command = command
        self.exitcode = None if exitcode is None else str(exitcode)
        self.error = error
        return self

    def __str__(self):
        if self.exitcode is not None:
            return (
                f"Exitcode {self.exitcode} while calling editor: "
                f"{self.command}"
            )
        return f"Cannot run editor {self.command}: {self.error}"

    def report(self):
        output.error("Error while calling the editor")
        output.tabular("command", self.command, red=True)
        if self.exitcode is not None:
            output.tabular("exit code", self.exitcode)
        if self.error:
            output.tabular("message", self.error, separator=":\n")
        output.annotate("The secret was not changed.")
