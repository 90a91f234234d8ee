import pytest

from plugmodes.core.config import Config


@pytest.fixture
def config(tmp_path):
    return Config(app_data=tmp_path / "appdata")


@pytest.fixture
def touch():
    def _touch(path, content=b"x"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _touch
