"""
Unit tests for the SQLite profile store.
"""
import pytest

from core.exceptions import ProfileNotFoundError
from core.schema import CustomSummaryDefinition, Profile


def test_get_unknown_profile_is_none(db):
    assert db.get("missing") is None
    assert db.get_profile("missing") is None


def test_save_and_get_profile(db, sample_csv):
    summary = CustomSummaryDefinition(name="Benefits", reason_matches=["Unemployment"])
    profile = Profile(name="Main", csv_data=sample_csv, color="#3b82f6", custom_summaries=[summary])
    db.save_profile(profile)

    loaded = db.get_profile(profile.id)
    assert loaded == profile
    assert loaded.custom_summaries[0].reason_matches == ["Unemployment"]
    assert db.get(profile.id) == sample_csv


def test_set_replaces_raw_text(db):
    profile = Profile(name="Main")
    db.save_profile(profile)
    assert db.get(profile.id) == ""

    db.set(profile.id, '"A"\n"1"')
    assert db.get(profile.id) == '"A"\n"1"'


def test_set_unknown_profile_raises(db):
    with pytest.raises(ProfileNotFoundError):
        db.set("missing", "text")


def test_save_profile_upserts(db):
    profile = Profile(name="Main")
    db.save_profile(profile)
    db.save_profile(profile.model_copy(update={"name": "Renamed"}))

    profiles = db.list_profiles()
    assert len(profiles) == 1
    assert profiles[0].name == "Renamed"


def test_list_profiles_in_creation_order(db):
    first = Profile(name="First", created_at="2025-01-01T00:00:00+00:00")
    second = Profile(name="Second", created_at="2025-02-01T00:00:00+00:00")
    db.save_profile(second)
    db.save_profile(first)
    assert [p.name for p in db.list_profiles()] == ["First", "Second"]


def test_delete_profile(db):
    profile = Profile(name="Main")
    db.save_profile(profile)
    assert db.delete_profile(profile.id) is True
    assert db.delete_profile(profile.id) is False
    assert db.list_profiles() == []


def test_active_id_round_trip(db):
    assert db.get_active_id() is None
    db.set_active_id("abc")
    assert db.get_active_id() == "abc"
    db.set_active_id(None)
    assert db.get_active_id() is None
