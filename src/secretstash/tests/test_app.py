import os

import secretstash
from secretstash.app import current_env, priv_dir


def test_priv_dir_of_package():
    assert priv_dir("secretstash") == os.path.join(
        os.path.dirname(secretstash.__file__), "priv"
    )


def test_priv_dir_of_unknown_application(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert priv_dir("no_such_app") == os.path.join(str(tmp_path), "priv")
    assert priv_dir("no_such.sub_app") == os.path.join(str(tmp_path), "priv")


def test_priv_dir_of_plain_module(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert priv_dir("textwrap") == os.path.join(str(tmp_path), "priv")


def test_current_env(monkeypatch):
    assert current_env() == ""
    monkeypatch.setenv("SECRETSTASH_ENV", "prod")
    assert current_env() == "prod"
