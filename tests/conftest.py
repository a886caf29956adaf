"""Shared pytest fixtures."""

from types import SimpleNamespace

import fakeredis
import pytest
from fpdf import FPDF

from aiprofessor.config import Config
from aiprofessor.core.modules.user.models import User


class FakeUserService:
    """Credential store with fixed users and plain-text passwords."""

    def __init__(self):
        self.users = {
            "alice": (User(id=1, username="alice", password_hash="-"), "alice-password"),
            "bob": (User(id=2, username="bob", password_hash="-"), "bob-password"),
        }

    async def verify_credentials(self, username, password):
        entry = self.users.get(username)
        if entry is None or entry[1] != password:
            return None
        return entry[0]


class FakeCounterService:
    def __init__(self):
        self.values = {}

    async def get_next_sequence(self, counter_type):
        self.values[counter_type] = self.values.get(counter_type, 0) + 1
        return self.values[counter_type]


@pytest.fixture
def config(tmp_path):
    """Configuration that needs no running MongoDB, Redis or LLM provider."""
    return Config(
        database_url="mongodb://localhost:27017/aiprofessor_test",
        jwt_secret="unit-test-secret-that-is-long-enough-for-hs256",
        base_url="https://files.example.com",
        files_path=str(tmp_path / "datas"),
        llm_api_key="test-key",
    )


@pytest.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def fake_services():
    """Stand-in for the service registry, extended per test module."""
    return SimpleNamespace(user=FakeUserService(), counter=FakeCounterService())


@pytest.fixture
def fake_core(config, fake_services):
    return SimpleNamespace(config=config, services=fake_services)


@pytest.fixture(scope="session")
def sample_pdf_bytes():
    """A small real PDF with extractable text."""
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("helvetica", size=12)
    pdf.cell(text="Hello lecture notes")
    return bytes(pdf.output())
