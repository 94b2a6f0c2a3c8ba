import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Every test runs against a private in-memory SQLite database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("APP_ENV", "test")

from rehearsal_scheduler.db import drop_db, init_db  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db():
    drop_db()
    init_db()
    yield
