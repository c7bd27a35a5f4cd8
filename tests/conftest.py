import pytest

from reader_store import ReaderStore
from tracker_web import create_app


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "users.json"


@pytest.fixture
def store(data_file):
    return ReaderStore(data_file)


@pytest.fixture
def app(store):
    app = create_app(store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
