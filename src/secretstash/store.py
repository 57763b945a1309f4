"""Read and write encrypted secrets on disk.

Each secret is one file holding the packed cipher blob::

    <priv_path>/<prefix>/<env>/<name>.secret

There is no index: the namespace directory is the list of secrets.

Writes replace the file atomically, so readers never see a partial
secret. There is no locking between processes: of two concurrent writers
to the same name the last one wins.
"""

import logging
import os
import os.path
import tempfile
from typing import List

from secretstash import InvalidSecretName, SecretNotFoundError, StorageError
from secretstash.config import Config

log = logging.getLogger(__name__)

FILE_ENDING = ".secret"


def validate_name(name: str) -> str:
    if (
        not isinstance(name, str)
        or not name
        or name.startswith(".")
        or "/" in name
        or "\0" in name
        or (os.path.altsep and os.path.altsep in name)
        or os.path.sep in name
    ):
        raise InvalidSecretName.from_context(name)
    return name


def path(config: Config, name: str) -> str:
    """Return the file that holds secret `name` in `config`'s namespace."""
    return os.path.join(config.namespace, validate_name(name) + FILE_ENDING)


def exists(config: Config, name: str) -> bool:
    return os.path.isfile(path(config, name))


def fetch(config: Config, name: str) -> str:
    secret_path = path(config, name)
    log.debug("Reading %s", secret_path)
    try:
        with open(secret_path, "rb") as f:
            blob = f.read()
    except FileNotFoundError:
        raise SecretNotFoundError.from_context(name, secret_path)
    except OSError as e:
        raise StorageError.from_context("read", secret_path, e) from e
    return config.cipher.decrypt(config.key, blob, config.cipher_opts)


def put(config: Config, name: str, plaintext: str) -> None:
    secret_path = path(config, name)
    blob = config.cipher.encrypt(config.key, plaintext, config.cipher_opts)
    directory = os.path.dirname(secret_path)
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise StorageError.from_context("create", directory, e) from e

    log.debug("Writing %s", secret_path)
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix="." + name + ".", suffix=".tmp", dir=directory
        )
    except OSError as e:
        raise StorageError.from_context("write", secret_path, e) from e
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(blob)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, secret_path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise StorageError.from_context("write", secret_path, e) from e


def delete(config: Config, name: str) -> None:
    secret_path = path(config, name)
    log.debug("Deleting %s", secret_path)
    try:
        os.unlink(secret_path)
    except FileNotFoundError:
        raise SecretNotFoundError.from_context(name, secret_path)
    except OSError as e:
        raise StorageError.from_context("delete", secret_path, e) from e


def list_names(config: Config) -> List[str]:
    """Return the sorted names of all secrets in the namespace."""
    try:
        entries = os.listdir(config.namespace)
    except FileNotFoundError:
        return []
    except OSError as e:
        raise StorageError.from_context("list", config.namespace, e) from e
    return sorted(
        entry[: -len(FILE_ENDING)]
        for entry in entries
        if entry.endswith(FILE_ENDING)
        and not entry.startswith(".")
        and os.path.isfile(os.path.join(config.namespace, entry))
    )
