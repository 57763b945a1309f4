"""Resolve the configuration of a secret store.

A `Config` carries everything needed to read and write secrets: the
symmetric key, the cipher and the namespace (`priv_path`, `prefix`,
`env`). Keys are given verbatim or derived from a password::

    config = Config.new("myapp", password="hunter2", env="prod")

Options can also live in an INI file, one section per prefix::

    [secrets]
    cipher = chacha20poly1305
    key_derivation = scrypt
    key_derivation_opts =
        salt = myapp
        n = 32768

Keys and passwords are never read from that file.
"""

import configparser
import dataclasses
import logging
import os.path
import types
from typing import Mapping, Optional

from configupdater import ConfigUpdater

import secretstash.app
from secretstash import ConfigurationError
from secretstash.cipher import DEFAULT as DEFAULT_CIPHER
from secretstash.cipher import Cipher, get_cipher
from secretstash.kdf import DEFAULT as DEFAULT_KEY_DERIVATION
from secretstash.kdf import get_key_derivation

log = logging.getLogger(__name__)

DEFAULT_PREFIX = "secrets"
DEFAULT_CONFIG_FILE = "secretstash.cfg"

OPTIONS = (
    "key",
    "password",
    "key_derivation",
    "key_derivation_opts",
    "priv_path",
    "prefix",
    "env",
    "cipher",
    "cipher_opts",
)

# Never taken from a configuration file.
SENSITIVE_OPTIONS = ("key", "password")


def available_options():
    return list(OPTIONS)


def _check_segment(option: str, value, allow_empty: bool) -> str:
    value = str(value)
    if not value and not allow_empty:
        raise ConfigurationError.from_context(f"The {option} is empty")
    separators = [s for s in (os.sep, os.altsep, "\0") if s]
    if value in (".", "..") or any(s in value for s in separators):
        raise ConfigurationError.from_context(
            f"Invalid {option} {value!r}: must be a single path segment"
        )
    return value


def _frozen(mapping: Optional[Mapping]) -> Mapping:
    return types.MappingProxyType(dict(mapping or {}))


@dataclasses.dataclass(frozen=True, repr=False)
class Config:

    key: bytes
    env: str
    cipher: Cipher
    cipher_opts: Mapping
    priv_path: str
    prefix: str

    def __repr__(self):
        # Keep the key out of tracebacks and logs.
        return (
            f"<Config prefix={self.prefix!r} env={self.env!r} "
            f"cipher={self.cipher.name!r} priv_path={self.priv_path!r}>"
        )

    @property
    def namespace(self) -> str:
        """Directory holding the secrets of this configuration."""
        return os.path.join(self.priv_path, self.prefix, self.env)

    @classmethod
    def new(cls, app_name: str, **options) -> "Config":
        """Create a configuration for the application `app_name`.

        The key is taken from `key` if given, otherwise it is derived
        from `password` with `key_derivation` (default: PBKDF2) and
        `key_derivation_opts`. Without either a `ConfigurationError` is
        raised.

        `priv_path` defaults to the application's private data directory,
        `prefix` to "secrets" and `env` to the current environment name
        (empty if unknown).

        """
        unknown = sorted(set(options) - set(OPTIONS))
        if unknown:
            raise ConfigurationError.from_context(
                "Unknown configuration options: {}".format(", ".join(unknown))
            )

        if options.get("key") is not None:
            key = options["key"]
            if not isinstance(key, (bytes, bytearray)):
                raise ConfigurationError.from_context(
                    "The key must be given as bytes"
                )
            if not key:
                raise ConfigurationError.from_context("The key is empty")
            key = bytes(key)
            log.debug("Using explicit key")
        elif options.get("password") is not None:
            key_derivation = get_key_derivation(
                options.get("key_derivation") or DEFAULT_KEY_DERIVATION
            )
            log.debug("Deriving key with %r", key_derivation)
            key = key_derivation.kdf(
                options["password"], options.get("key_derivation_opts") or {}
            )
        else:
            raise ConfigurationError.from_context(
                "No key or password specified"
            )

        cipher = get_cipher(options.get("cipher") or DEFAULT_CIPHER)
        cipher_opts = _frozen(options.get("cipher_opts"))
        if hasattr(cipher, "options"):
            cipher.options(cipher_opts)

        priv_path = options.get("priv_path")
        if priv_path is None:
            priv_path = secretstash.app.priv_dir(app_name)
        prefix = options.get("prefix")
        if prefix is None:
            prefix = DEFAULT_PREFIX
        prefix = _check_segment("prefix", prefix, allow_empty=False)
        env = options.get("env")
        if env is None:
            env = secretstash.app.current_env()
        env = _check_segment("env", env, allow_empty=True)

        return cls(
            key=key,
            env=env,
            cipher=cipher,
            cipher_opts=cipher_opts,
            priv_path=str(priv_path),
            prefix=prefix,
        )

    @classmethod
    def from_file(
        cls,
        app_name: str,
        env: str,
        prefix: str = DEFAULT_PREFIX,
        path: Optional[str] = None,
        **overrides,
    ) -> "Config":
        """Create a configuration from the `prefix` section of a file.

        Explicit `overrides` take precedence over the file. A missing
        file is only an error if `path` was given explicitly.

        """
        options = read_config_file(prefix, path)
        options.update(
            {k: v for k, v in overrides.items() if v is not None}
        )
        options["env"] = env
        options["prefix"] = prefix
        return cls.new(app_name, **options)


def _parse_opts(value: str) -> dict:
    result = {}
    for line in value.splitlines():
        line = line.strip()
        if not line:
            continue
        name, sep, opt_value = line.partition("=")
        if not sep:
            raise ConfigurationError.from_context(
                f"Expected `name = value`, got {line!r}"
            )
        result[name.strip()] = opt_value.strip()
    return result


def read_config_file(prefix: str, path: Optional[str] = None) -> dict:
    """Return the options of the `prefix` section in a configuration file."""
    explicit = path is not None
    if path is None:
        path = DEFAULT_CONFIG_FILE
    if not os.path.exists(path):
        if explicit:
            raise ConfigurationError.from_context(
                f"Configuration file not found: {path}"
            )
        return {}

    config = ConfigUpdater()
    try:
        config.read(path)
    except configparser.Error as e:
        raise ConfigurationError.from_context(
            f"Cannot parse configuration file {path}: {e}"
        )
    if not config.has_section(prefix):
        log.debug("No section [%s] in %s", prefix, path)
        return {}

    options = {}
    for option in config[prefix]:
        if option in SENSITIVE_OPTIONS:
            raise ConfigurationError.from_context(
                f"Refusing to read `{option}` from configuration file {path}"
            )
        if option not in OPTIONS:
            raise ConfigurationError.from_context(
                f"Unknown option `{option}` in section [{prefix}] of {path}"
            )
        value = config[prefix][option].value or ""
        if option.endswith("_opts"):
            options[option] = _parse_opts(value)
        else:
            options[option] = value.strip()
    log.debug("Read options %s from %s", sorted(options), path)
    return options


def resolve(app_name: str, options: Optional[Mapping] = None) -> Config:
    return Config.new(app_name, **dict(options or {}))
