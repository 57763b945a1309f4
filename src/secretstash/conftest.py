import pytest

import secretstash._output
from secretstash.kdf import PBKDF2, ScryptKDF
from secretstash.passphrase import PasswordPrompt


@pytest.fixture(autouse=True)
def cheap_key_derivation(monkeypatch):
    # Production work factors make the test suite crawl.
    monkeypatch.setitem(PBKDF2.defaults, "iterations", 1000)
    monkeypatch.setitem(ScryptKDF.defaults, "n", 2**10)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("SECRETSTASH_ENV", raising=False)
    monkeypatch.delenv("SECRETSTASH_PASSWORD", raising=False)
    monkeypatch.setattr(PasswordPrompt, "cache", {})


@pytest.fixture(autouse=True)
def reset_output():
    output = secretstash._output.output
    backend, enable_debug = output.backend, output.enable_debug
    yield
    output.backend, output.enable_debug = backend, enable_debug


class RecordingBackend(object):

    def __init__(self):
        self.lines = []

    def line(self, message, **format):
        self.lines.append(message)

    def write(self, content, **format):
        self.lines.append(content)

    @property
    def text(self):
        return "\n".join(self.lines)


@pytest.fixture
def reported():
    """Capture everything reported through the output object."""
    backend = RecordingBackend()
    secretstash._output.output.backend = backend
    return backend
