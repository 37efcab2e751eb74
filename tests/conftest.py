"""
Shared fixtures: sample bank exports and an isolated profile store.
"""
import pytest

from core.config import reset_settings
from core.db import Database, reset_db
from services.profile_service import ProfileService

HEADER = '"","From","Routing","Reason","Amount","Balance","Date"'

SAMPLE_CSV = "\n".join([
    HEADER,
    '"84651091","LS Bets","030016036","Gateway Payment","-$2,500","240313","07/Aug/2025 23:13"',
    '"84649763","San Andreas Government","020000028","Unemployment Insurance","+$500","242813","07/Aug/2025 22:48"',
    '"84646624","San Andreas Government","020000028","Unemployment Insurance","+$500","242313","07/Aug/2025 21:48"',
    '"84642108","San Andreas Government","020000028","Unemployment Insurance","+$500","241813","07/Aug/2025 20:48"',
])


def make_csv(*rows):
    """Build a bank export from (id, from, reason, amount, date) tuples."""
    lines = [HEADER]
    for txn_id, sender, reason, amount, date in rows:
        lines.append(f'"{txn_id}","{sender}","000000000","{reason}","{amount}","0","{date}"')
    return "\n".join(lines)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary database for every test."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "profiles.db"))
    reset_settings()
    reset_db()
    yield
    reset_settings()
    reset_db()


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "store.db"))
    database.init_db()
    return database


@pytest.fixture
def service(db):
    return ProfileService(db)
