"""Derive symmetric keys from passwords."""

from typing import Dict, List, Mapping, Optional, Type

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from secretstash import ConfigurationError

DEFAULT_SALT = b"secretstash.kdf"


def _as_bytes(value) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise ConfigurationError.from_context(
        f"Salt must be text or bytes, got {value!r}"
    )


class KeyDerivation:
    """A deterministic, one-way password to key transform."""

    name: Optional[str] = None
    defaults: Dict[str, object] = {}

    def options(self, opts: Mapping) -> dict:
        unknown = sorted(set(opts) - set(self.defaults))
        if unknown:
            raise ConfigurationError.from_context(
                "Unknown options for key derivation {}: {}".format(
                    self.name, ", ".join(unknown)
                )
            )
        result = dict(self.defaults)
        for name, value in opts.items():
            if isinstance(self.defaults[name], int):
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ConfigurationError.from_context(
                        f"Option {name} of key derivation {self.name} "
                        f"must be an integer, got {value!r}"
                    )
            result[name] = value
        return result

    def kdf(self, password: str, opts: Mapping) -> bytes:
        raise NotImplementedError("kdf() not implemented")

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"


class PBKDF2(KeyDerivation):
    name = "pbkdf2"
    defaults = {
        "salt": DEFAULT_SALT,
        "iterations": 100_000,
        "length": 32,
        "hash": "sha256",
    }
    algorithms = {"sha256": hashes.SHA256, "sha512": hashes.SHA512}

    def kdf(self, password, opts):
        opts = self.options(opts)
        try:
            algorithm = self.algorithms[opts["hash"]]()
        except KeyError:
            raise ConfigurationError.from_context(
                "Unsupported PBKDF2 hash {!r}, choose one of: {}".format(
                    opts["hash"], ", ".join(sorted(self.algorithms))
                )
            )
        derivation = PBKDF2HMAC(
            algorithm=algorithm,
            length=opts["length"],
            salt=_as_bytes(opts["salt"]),
            iterations=opts["iterations"],
            backend=default_backend(),
        )
        return derivation.derive(password.encode("utf-8"))


class ScryptKDF(KeyDerivation):
    name = "scrypt"
    defaults = {
        "salt": DEFAULT_SALT,
        "n": 2**14,
        "r": 8,
        "p": 1,
        "length": 32,
    }

    def kdf(self, password, opts):
        opts = self.options(opts)
        try:
            derivation = Scrypt(
                salt=_as_bytes(opts["salt"]),
                length=opts["length"],
                n=opts["n"],
                r=opts["r"],
                p=opts["p"],
                backend=default_backend(),
            )
        except ValueError as e:
            raise ConfigurationError.from_context(
                f"Invalid scrypt parameters: {e}"
            )
        return derivation.derive(password.encode("utf-8"))


all_key_derivations: List[Type[KeyDerivation]] = [PBKDF2, ScryptKDF]

DEFAULT = PBKDF2.name


def get_key_derivation(name) -> KeyDerivation:
    """Return the key derivation registered under `name`.

    Objects that already provide `kdf()` are passed through unchanged.
    """
    if hasattr(name, "kdf"):
        return name
    for kd in all_key_derivations:
        if kd.name == name:
            return kd()
    raise ConfigurationError.from_context(
        "Unknown key derivation {!r}, choose one of: {}".format(
            name, ", ".join(kd.name for kd in all_key_derivations)
        )
    )
