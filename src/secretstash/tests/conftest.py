import pytest

from secretstash.config import Config

KEY = bytes(range(32))


@pytest.fixture
def config(tmp_path):
    return Config.new("myapp", key=KEY, env="test", priv_path=str(tmp_path))


@pytest.fixture
def make_config(tmp_path):
    def make(**options):
        options.setdefault("key", KEY)
        options.setdefault("env", "test")
        options.setdefault("priv_path", str(tmp_path))
        return Config.new("myapp", **options)

    return make
