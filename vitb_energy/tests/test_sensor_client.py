import httpx
import pytest

from vitb_energy.core.errors import FetchError, SourceUnavailable
from vitb_energy.services.sensor_client import fetch_latest_reading
from vitb_energy.tests.conftest import make_payload

URL = "https://sensors.example.test/api/sensordata"


def _respond(monkeypatch, status_code=200, **kwargs):
    calls = []

    async def fake_get(self, url, **kw):
        calls.append(url)
        return httpx.Response(status_code, request=httpx.Request("GET", url), **kwargs)

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get)
    return calls


@pytest.mark.asyncio
async def test_uses_only_first_element(monkeypatch):
    newest = make_payload((110, 55, 33, 12))
    older = make_payload((100, 50, 30, 10))
    calls = _respond(monkeypatch, json=[newest, older])

    reading = await fetch_latest_reading(URL)

    assert calls == [URL]
    assert reading.cumulative_energy(1) == 110
    assert reading.cumulative_energy(41) == 12


@pytest.mark.asyncio
async def test_extra_keys_are_ignored_and_numeric_strings_coerced(monkeypatch):
    payload = make_payload()
    payload["_id"] = "65f0c0ffee"
    payload["TotalNet_KWH_meter_69"] = "33.5"
    _respond(monkeypatch, json=[payload])

    reading = await fetch_latest_reading(URL)

    assert reading.cumulative_energy(69) == 33.5


@pytest.mark.asyncio
async def test_transport_error_is_source_unavailable(monkeypatch):
    async def fake_get(self, url, **kw):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx.AsyncClient, "get", fake_get)

    with pytest.raises(SourceUnavailable):
        await fetch_latest_reading(URL)


@pytest.mark.asyncio
async def test_http_error_status_is_source_unavailable(monkeypatch):
    _respond(monkeypatch, status_code=502, text="Bad Gateway")

    with pytest.raises(SourceUnavailable, match="HTTP 502"):
        await fetch_latest_reading(URL)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [[], {"data": []}, ["not-an-object"]])
async def test_unexpected_shape_is_fetch_error(monkeypatch, body):
    _respond(monkeypatch, json=body)

    with pytest.raises(FetchError):
        await fetch_latest_reading(URL)


@pytest.mark.asyncio
async def test_missing_cumulative_energy_is_fetch_error(monkeypatch):
    payload = make_payload()
    del payload["TotalNet_KWH_meter_40"]
    _respond(monkeypatch, json=[payload])

    with pytest.raises(FetchError, match="Malformed reading"):
        await fetch_latest_reading(URL)


@pytest.mark.asyncio
async def test_non_json_body_is_fetch_error(monkeypatch):
    _respond(monkeypatch, text="<html>maintenance</html>")

    with pytest.raises(FetchError):
        await fetch_latest_reading(URL)
