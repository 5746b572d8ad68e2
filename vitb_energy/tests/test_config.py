import pytest

from vitb_energy.core import database
from vitb_energy.core.config import Settings, settings
from vitb_energy.core.timeutils import day_boundaries
from vitb_energy.tests.conftest import utc


def test_defaults_match_deployed_service(monkeypatch):
    for key in ("PORT", "POLL_INTERVAL_SECONDS", "BASELINE_REFRESH_INTERVAL_SECONDS"):
        monkeypatch.delenv(key, raising=False)
    fresh = Settings(_env_file=None)

    assert fresh.PORT == 4000
    assert fresh.POLL_INTERVAL_SECONDS == 180
    assert fresh.BASELINE_REFRESH_INTERVAL_SECONDS == 180


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MONGO_URL", "mongodb://db:27017/vit")

    fresh = Settings(_env_file=None)

    assert fresh.PORT == 8080
    assert fresh.get_mongo_uri() == "mongodb://db:27017/vit"


def test_missing_mongo_uri_raises(monkeypatch):
    for key in ("MONGO_URL", "MONGODB_URL", "MONGODB_URI"):
        monkeypatch.delenv(key, raising=False)

    with pytest.raises(RuntimeError):
        Settings(_env_file=None).get_mongo_uri()


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("mongodb+srv://u:p@cluster0.example.net/vitdata?retryWrites=true", "vitdata"),
        ("mongodb://localhost:27017/", "vitb_energy"),
        ("mongodb://localhost:27017", "vitb_energy"),
    ],
)
def test_db_name_from_uri(monkeypatch, uri, expected):
    monkeypatch.setattr(settings, "MONGO_DB_NAME", "vitb_energy")
    assert database._get_db_name_from_uri(uri) == expected


def test_day_boundaries_follow_local_calendar(monkeypatch):
    monkeypatch.setattr(settings, "TIMEZONE", "Asia/Kolkata")

    # 20:00 UTC on the 5th is already the 6th in India
    yesterday, today = day_boundaries(utc(2024, 3, 5, 20, 0, 0))

    assert today == utc(2024, 3, 5, 18, 30, 0)
    assert yesterday == utc(2024, 3, 4, 18, 30, 0)
