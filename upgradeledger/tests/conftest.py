"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from upgradeledger.collaborators import Action, Group, InstallSession
from upgradeledger.ledger import UpgradeLedger
from upgradeledger.store.json_file import JsonFileRecordStore
from upgradeledger.store.memory import MemoryRecordStore

ROOT_PATH = "/var/upgrade"


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def json_store(tmp_path: Path) -> JsonFileRecordStore:
    return JsonFileRecordStore(tmp_path / ".upgradeledger" / "ledger.json")


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path: Path):
    """Run a test against both store backends."""
    if request.param == "memory":
        return MemoryRecordStore()
    return JsonFileRecordStore(tmp_path / "ledger.json")


@pytest.fixture
def messages() -> list[str]:
    """Progress messages mirrored to the install context."""
    return []


@pytest.fixture
def session(store, messages: list[str]) -> InstallSession:
    return InstallSession(package_version="1.2.0", store=store, listener=messages.append)


@pytest.fixture
def ledger(session: InstallSession) -> UpgradeLedger:
    return UpgradeLedger.open(session, ROOT_PATH)


@pytest.fixture
def setup_group() -> Group:
    return Group("setup")


@pytest.fixture
def add_index() -> Action:
    return Action(name="addIndex", content_fingerprint="h1")


@pytest.fixture
def seed_users() -> Action:
    return Action(name="seedUsers", content_fingerprint="h2")
