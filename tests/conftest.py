import os
import tempfile

import pytest

# The database and API keys are read at import time
_tmp_dir = tempfile.mkdtemp(prefix="ladoum-tests-")
os.environ["DB_PATH"] = os.path.join(_tmp_dir, "test.db")
os.environ["VALID_KEYS"] = "test-key"

from fastapi.testclient import TestClient  # noqa: E402

from ladoum_backend.app import app  # noqa: E402
from ladoum_backend.db import conn  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    with conn:
        conn.execute("DELETE FROM reproduction_events")
        conn.execute("DELETE FROM tasks")
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"x-user-key": "test-key"}
