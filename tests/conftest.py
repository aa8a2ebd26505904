import pytest

from app import app as flask_app


@pytest.fixture
def make_file(tmp_path):
    def _make_file(data, name="input.bin"):
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return _make_file


@pytest.fixture
def client(tmp_path):
    flask_app.config.update(TESTING=True, DATA_DIR=str(tmp_path / "data"), FORCE_COMPRESSION=False)
    with flask_app.test_client() as client:
        yield client
