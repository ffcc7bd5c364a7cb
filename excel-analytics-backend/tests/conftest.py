# Shared pytest fixtures
from __future__ import annotations
import io
import os
import tempfile
from pathlib import Path

# Must be set before excel_analytics.config is imported
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="excel-analytics-uploads-"))

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from excel_analytics import config
from excel_analytics.database.store import InMemoryDocumentStore, get_store
from excel_analytics.main import app


def make_xlsx(sheets: dict[str, list[list[object]]]) -> bytes:
    """Build an .xlsx in memory; every sheet is written without header/index"""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buffer.getvalue()


@pytest.fixture()
def xlsx_factory():
    return make_xlsx


@pytest.fixture()
def people_xlsx() -> bytes:
    return make_xlsx({
        "People": [
            ["Name", "Age"],
            ["Alice", 30],
            ["Bob", 25],
            [None, None],
            ["Carol", 40],
        ]
    })


@pytest.fixture()
def upload_dir(tmp_path: Path, monkeypatch) -> Path:
    d = tmp_path / "uploads"
    monkeypatch.setattr(config, "UPLOAD_DIR", str(d))
    return d


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def client(store: InMemoryDocumentStore, upload_dir: Path):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register(client: TestClient, name: str, email: str, password: str = "s3cret-pass") -> dict:
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register_user(client: TestClient):
    def _register(name: str, email: str, password: str = "s3cret-pass") -> dict:
        return register(client, name, email, password)
    return _register


@pytest.fixture()
def auth_headers():
    return bearer


@pytest.fixture()
def admin_auth(client: TestClient) -> dict:
    """First registered user, therefore admin"""
    return register(client, "Admin", "admin@example.com")


@pytest.fixture()
def user_auth(client: TestClient, admin_auth: dict) -> dict:
    return register(client, "Ana", "ana@example.com")
