"""Pluggable ciphers.

Every cipher turns a plaintext string into a packed blob (see
`secretstash.framing`) tagged with its own identifier, and back. Ciphers
are selected by name through `get_cipher()`.
"""

import base64
import logging
import os
from typing import Dict, List, Mapping, Optional, Set, Type, Union

import pyrage
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import (
    AESGCM,
    ChaCha20Poly1305,
)

from secretstash import (
    AuthenticationError,
    ConfigurationError,
    FormatError,
    TagMismatchError,
)
from secretstash.framing import pack, unpack

log = logging.getLogger(__name__)


def _to_bytes(plaintext: Union[str, bytes]) -> bytes:
    if isinstance(plaintext, str):
        return plaintext.encode("utf-8")
    return bytes(plaintext)


def _to_str(data: bytes, cipher: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError.from_context(
            f"{cipher} secret does not contain UTF-8 text: {e}"
        )


class Cipher:
    name: Optional[str] = None
    tag: Optional[str] = None
    defaults: Dict[str, object] = {}

    def options(self, opts: Mapping) -> dict:
        unknown = sorted(set(opts) - set(self.defaults))
        if unknown:
            raise ConfigurationError.from_context(
                "Unknown options for cipher {}: {}".format(
                    self.name, ", ".join(unknown)
                )
            )
        result = dict(self.defaults)
        result.update(opts)
        return result

    def encrypt(self, key: bytes, plaintext: str, opts: Mapping) -> bytes:
        raise NotImplementedError("encrypt() not implemented")

    def decrypt(self, key: bytes, blob: bytes, opts: Mapping) -> str:
        raise NotImplementedError("decrypt() not implemented")

    def _unpack_verified(self, blob):
        """Unpack a blob that is about to be authenticated.

        A blob that is well-formed but carries the tag of another known
        cipher means the wrong cipher was configured and is reported as
        such. Anything else that cannot be parsed is treated as tampering.
        """
        try:
            return unpack(self.tag, blob)
        except TagMismatchError as e:
            if e.found in known_tags():
                raise
            raise AuthenticationError.from_context(
                self.name, "unrecognised header"
            ) from e
        except FormatError as e:
            raise AuthenticationError.from_context(self.name, str(e)) from e

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"


class PlaintextCipher(Cipher):
    """Stores secrets without any encryption.

    WARNING: this cipher is insecure. Only use it in tests or on top of an
    encrypted filesystem.
    """

    name = "plaintext"
    tag = "PLAIN"

    def encrypt(self, key, plaintext, opts):
        self.options(opts)
        return pack(self.tag, [_to_bytes(plaintext)])

    def decrypt(self, key, blob, opts):
        self.options(opts)
        parts = unpack(self.tag, blob)
        return ";".join(_to_str(part, self.name) for part in parts)


class AEADCipher(Cipher):
    """Authenticated encryption with a random nonce per secret.

    Blob parts are ``[nonce, ciphertext, mac]``. The tag is bound to the
    ciphertext as associated data, followed by the optional
    ``associated_data`` cipher option.
    """

    algorithm = None
    nonce_size = 12
    mac_size = 16
    defaults = {"associated_data": b""}

    def _aead(self, key):
        try:
            return self.algorithm(key)
        except (TypeError, ValueError) as e:
            raise ConfigurationError.from_context(
                f"Key is not usable with cipher {self.name}: {e}"
            )

    def _associated_data(self, opts):
        associated_data = opts["associated_data"]
        return self.tag.encode("ascii") + _to_bytes(associated_data)

    def encrypt(self, key, plaintext, opts):
        opts = self.options(opts)
        aead = self._aead(key)
        nonce = os.urandom(self.nonce_size)
        sealed = aead.encrypt(
            nonce, _to_bytes(plaintext), self._associated_data(opts)
        )
        ciphertext, mac = sealed[: -self.mac_size], sealed[-self.mac_size:]
        return pack(self.tag, [nonce, ciphertext, mac])

    def decrypt(self, key, blob, opts):
        opts = self.options(opts)
        aead = self._aead(key)
        parts = self._unpack_verified(blob)
        if len(parts) != 3:
            raise AuthenticationError.from_context(
                self.name, f"expected 3 parts, found {len(parts)}"
            )
        nonce, ciphertext, mac = parts
        if len(nonce) != self.nonce_size or len(mac) != self.mac_size:
            raise AuthenticationError.from_context(
                self.name, "nonce or MAC has the wrong size"
            )
        try:
            plaintext = aead.decrypt(
                nonce, ciphertext + mac, self._associated_data(opts)
            )
        except InvalidTag:
            raise AuthenticationError.from_context(self.name)
        return _to_str(plaintext, self.name)


class AESGCMCipher(AEADCipher):
    """AES-GCM. The key length picks AES-128, -192 or -256."""

    name = "aes256gcm"
    tag = "AES256GCM"
    algorithm = AESGCM


class ChaCha20Poly1305Cipher(AEADCipher):
    name = "chacha20poly1305"
    tag = "CHACHA20POLY1305"
    algorithm = ChaCha20Poly1305


class AgeCipher(Cipher):
    """age passphrase encryption, keyed by the base64 form of the key."""

    name = "age"
    tag = "AGE"

    def _passphrase(self, key):
        if not key:
            raise ConfigurationError.from_context(
                f"Key is not usable with cipher {self.name}: empty key"
            )
        return base64.b64encode(bytes(key)).decode("ascii")

    def encrypt(self, key, plaintext, opts):
        self.options(opts)
        try:
            sealed = pyrage.passphrase.encrypt(
                _to_bytes(plaintext), self._passphrase(key)
            )
        except pyrage.EncryptError as e:
            raise ConfigurationError.from_context(
                f"age encryption failed: {e}"
            )
        return pack(self.tag, [sealed])

    def decrypt(self, key, blob, opts):
        self.options(opts)
        parts = self._unpack_verified(blob)
        if len(parts) != 1:
            raise AuthenticationError.from_context(
                self.name, f"expected 1 part, found {len(parts)}"
            )
        try:
            plaintext = pyrage.passphrase.decrypt(
                parts[0], self._passphrase(key)
            )
        except pyrage.DecryptError as e:
            raise AuthenticationError.from_context(self.name, str(e))
        return _to_str(plaintext, self.name)


all_ciphers: List[Type[Cipher]] = [
    PlaintextCipher,
    AESGCMCipher,
    ChaCha20Poly1305Cipher,
    AgeCipher,
]

DEFAULT = AESGCMCipher.name


def known_tags() -> Set[str]:
    return {c.tag for c in all_ciphers}


def get_cipher(name) -> Cipher:
    """Return the cipher registered under `name`.

    Objects that already provide `encrypt()` and `decrypt()` are passed
    through unchanged.
    """
    if hasattr(name, "encrypt") and hasattr(name, "decrypt"):
        return name
    for c in all_ciphers:
        if c.name == name:
            log.debug("Using cipher %s", c.name)
            return c()
    raise ConfigurationError.from_context(
        "Unknown cipher {!r}, choose one of: {}".format(
            name, ", ".join(c.name for c in all_ciphers)
        )
    )
