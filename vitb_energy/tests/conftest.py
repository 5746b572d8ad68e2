from datetime import datetime, timezone

import pytest
from bson import ObjectId

from vitb_energy.core.config import settings
from vitb_energy.models.energy_data import MeterReading
from vitb_energy.services import energy_store


def _matches(doc, query):
    for key, cond in (query or {}).items():
        value = doc.get(key)
        if isinstance(cond, dict):
            if "$gte" in cond and not (value is not None and value >= cond["$gte"]):
                return False
            if "$lt" in cond and not (value is not None and value < cond["$lt"]):
                return False
        elif value != cond:
            return False
    return True


def _project(doc, projection):
    doc = dict(doc)
    if projection and projection.get("_id") == 0:
        doc.pop("_id", None)
    return doc


def _sorted(docs, sort):
    for key, direction in reversed(sort or []):
        docs = sorted(docs, key=lambda d: d.get(key), reverse=direction < 0)
    return docs


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._limit = None

    def sort(self, key, direction=1):
        self._docs = _sorted(self._docs, [(key, direction)])
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs
        for bound in (self._limit, length):
            if bound:
                docs = docs[:bound]
        return list(docs)


class FakeCollection:
    """Just enough of motor's collection API for the energy store."""

    def __init__(self):
        self.docs = []

    async def find_one(self, query=None, projection=None, sort=None):
        found = _sorted([d for d in self.docs if _matches(d, query)], sort)
        return _project(found[0], projection) if found else None

    def find(self, query=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query)])

    async def insert_one(self, doc):
        doc_copy = dict(doc)
        doc_copy["_id"] = ObjectId()
        self.docs.append(doc_copy)

        class Result:
            inserted_id = doc_copy["_id"]
        return Result()

    async def delete_many(self, query):
        keep = [d for d in self.docs if not _matches(d, query)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep

        class Result:
            deleted_count = deleted
        return Result()


class BrokenCollection:
    """Every call fails the way pymongo does when the server is gone."""

    def __getattr__(self, item):
        from pymongo.errors import ServerSelectionTimeoutError

        async def _fail(*args, **kwargs):
            raise ServerSelectionTimeoutError("no servers available")
        return _fail


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "TIMEZONE", "UTC")
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path / "VIT-Data"))


@pytest.fixture
def energy_collection(monkeypatch):
    collection = FakeCollection()
    monkeypatch.setattr(energy_store, "get_energy_collection", lambda: collection)
    return collection


@pytest.fixture
def errors_collection(monkeypatch):
    collection = FakeCollection()
    monkeypatch.setattr(energy_store, "get_errors_collection", lambda: collection)
    return collection


def make_payload(kwh=(110, 55, 33, 12)):
    """Sensor API element with distinct values per meter and quantity."""
    payload = {}
    for idx, (meter_id, energy) in enumerate(zip((1, 40, 69, 41), kwh)):
        payload[f"Total_KW_meter_{meter_id}"] = 1.5 + idx
        payload[f"TotalNet_KWH_meter_{meter_id}"] = energy
        payload[f"Total_KVA_meter_{meter_id}"] = 2.25 + idx
        payload[f"Avg_PF_meter_{meter_id}"] = 0.95
        payload[f"TotalNet_KVAH_meter_{meter_id}"] = 1000 + idx
    return payload


def make_reading(kwh=(110, 55, 33, 12)):
    return MeterReading.model_validate(make_payload(kwh))


def make_document(timestamp, kwh):
    doc = make_payload(kwh)
    doc["timestamp"] = timestamp
    return doc


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)
