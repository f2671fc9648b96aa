import pytest
from fastapi.testclient import TestClient

from incident_desk.core.config import settings
from incident_desk.core.database import get_db
from incident_desk.main import app


class FakeDatabase:
    """In-process stand-in for the MySQL gateway with canned results."""

    def __init__(self):
        self.procedures = {}
        self.statements = []
        self.calls = []

    def on_call(self, procedure, result):
        self.procedures[procedure] = result

    def on_query(self, fragment, result):
        self.statements.append((fragment, result))

    async def call(self, procedure, params=()):
        self.calls.append((procedure, list(params)))
        result = self.procedures[procedure]
        if isinstance(result, Exception):
            raise result
        return result

    async def query(self, sql, params=()):
        self.calls.append((sql, list(params)))
        for fragment, result in self.statements:
            if fragment in sql:
                if isinstance(result, Exception):
                    raise result
                return result(sql, list(params)) if callable(result) else result
        raise AssertionError(f"Unexpected statement: {sql}")

    def procedure_params(self, procedure):
        return [params for name, params in self.calls if name == procedure]


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def client(fake_db, monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "TIMESTAMP_TIMEZONE", "UTC")
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()
