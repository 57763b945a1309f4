"""Defaults that depend on the host application."""

import importlib.util
import os
import os.path

ENV_VARIABLE = "SECRETSTASH_ENV"


def priv_dir(app_name: str) -> str:
    """Return the private data directory of an application.

    Importable packages keep their data in a `priv` directory next to
    their `__init__.py`. Anything else uses `priv` in the current working
    directory.
    """
    try:
        spec = importlib.util.find_spec(app_name)
    except (ImportError, ValueError):
        spec = None
    if spec is not None and spec.submodule_search_locations:
        package_dir = list(spec.submodule_search_locations)[0]
        return os.path.join(package_dir, "priv")
    return os.path.join(os.getcwd(), "priv")


def current_env() -> str:
    return os.environ.get(ENV_VARIABLE, "")
