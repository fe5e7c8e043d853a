"""School Routes - HTTP contract of /api/v1/school on a default instance.

Tests:
    - POST answers 201 with Location and camelCase body; blank principal defaulted
    - PUT/DELETE answer 204; id mismatch, blank principal and stale rowVersion rejected
    - history, by-date-range and as-of endpoints
    - error envelope: code, localized message, correlation id
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from school_api.core.errors import (
    INTERNAL_ERROR, INVALID_DATE_RANGE, NO_SCHOOLS_FOUND, SCHOOL_ID_MISMATCH,
    SCHOOL_NOT_FOUND, SCHOOL_VERSION_CONFLICT, VALIDATION_ERROR,
)

BASE = "/api/v1/school"


async def _create(client, name="Central High", **extra) -> dict:
    res = await client.post(BASE, json={"name": name, "address": "10 School Rd", **extra})
    assert res.status_code == 201
    return res.json()


def _update_body(school: dict, **changes) -> dict:
    body = {
        "id": school["id"],
        "name": school["name"],
        "address": school["address"],
        "principalName": school["principalName"],
    }
    body.update(changes)
    return body


async def test_create_returns_201_with_location(client):
    res = await client.post(
        BASE, json={"name": "Central High", "address": "10 School Rd", "principalName": "Grace"},
    )

    assert res.status_code == 201
    body = res.json()
    assert res.headers["location"] == f"{BASE}/{body['id']}"
    assert body["name"] == "Central High"
    assert body["principalName"] == "Grace"
    assert body["rowVersion"] == 1
    assert body["validTo"].startswith("9999-12-31T23:59:59.999999")


async def test_create_then_get_returns_same_fields(client):
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    created = await _create(client, principalName="Grace")

    res = await client.get(f"{BASE}/{created['id']}")

    assert res.status_code == 200
    fetched = res.json()
    assert fetched == created
    created_at = datetime.fromisoformat(fetched["createdAt"].replace("Z", "+00:00"))
    assert before <= created_at <= datetime.now(timezone.utc) + timedelta(seconds=1)


async def test_create_without_principal_uses_default(client):
    created = await _create(client, principalName="   ")

    assert created["principalName"] == "Default Principal"


async def test_create_rejects_blank_name(client):
    res = await client.post(BASE, json={"name": "  ", "address": "x"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == VALIDATION_ERROR


async def test_create_rejects_overlong_name(client):
    res = await client.post(BASE, json={"name": "n" * 101, "address": "x"})

    assert res.status_code == 400


async def test_get_all_empty_is_404(client):
    res = await client.get(BASE)

    assert res.status_code == 404
    assert res.json()["error"]["code"] == NO_SCHOOLS_FOUND


async def test_get_all_lists_current_schools(client):
    await _create(client, "A")
    await _create(client, "B")

    res = await client.get(BASE)

    assert [s["name"] for s in res.json()] == ["A", "B"]


async def test_get_is_idempotent(client):
    created = await _create(client)

    first = await client.get(f"{BASE}/{created['id']}")
    second = await client.get(f"{BASE}/{created['id']}")

    assert first.json() == second.json()


async def test_update_returns_204_and_creates_version(client):
    created = await _create(client)

    res = await client.put(f"{BASE}/{created['id']}", json=_update_body(created, name="Renamed"))

    assert res.status_code == 204
    assert res.content == b""
    current = (await client.get(f"{BASE}/{created['id']}")).json()
    assert current["name"] == "Renamed"
    assert current["createdAt"] == created["createdAt"]
    history = (await client.get(f"{BASE}/history/{created['id']}")).json()
    assert [v["name"] for v in history] == ["Central High", "Renamed"]


async def test_update_id_mismatch_is_400(client):
    created = await _create(client)

    res = await client.put(f"{BASE}/{created['id'] + 1}", json=_update_body(created))

    assert res.status_code == 400
    assert res.json()["error"]["code"] == SCHOOL_ID_MISMATCH


@pytest.mark.parametrize("principal", ["", "   "])
async def test_update_rejects_blank_principal(client, principal):
    created = await _create(client, principalName="Grace")
    url = f"{BASE}/{created['id']}"

    res = await client.put(url, json=_update_body(created, principalName=principal))

    assert res.status_code == 400
    assert res.json()["error"]["code"] == VALIDATION_ERROR
    assert (await client.get(url)).json()["principalName"] == "Grace"


async def test_update_missing_school_is_404(client):
    body = {"id": 77, "name": "A", "address": "B", "principalName": "C"}

    res = await client.put(f"{BASE}/77", json=body)

    assert res.status_code == 404
    assert res.json()["error"]["code"] == SCHOOL_NOT_FOUND


async def test_update_with_stale_row_version_is_409(client):
    created = await _create(client)
    url = f"{BASE}/{created['id']}"
    await client.put(url, json=_update_body(created, name="First", rowVersion=1))

    res = await client.put(url, json=_update_body(created, name="Second", rowVersion=1))

    assert res.status_code == 409
    assert res.json()["error"]["code"] == SCHOOL_VERSION_CONFLICT


async def test_delete_returns_204_then_404(client):
    created = await _create(client)
    url = f"{BASE}/{created['id']}"

    assert (await client.delete(url)).status_code == 204
    assert (await client.get(url)).status_code == 404
    assert (await client.delete(url)).status_code == 404
    history = await client.get(f"{BASE}/history/{created['id']}")
    assert history.status_code == 200
    assert len(history.json()) == 1


async def test_history_of_unknown_school_is_404(client):
    res = await client.get(f"{BASE}/history/123")

    assert res.status_code == 404


async def test_by_date_range_inverted_is_400(client):
    res = await client.get(
        f"{BASE}/by-date-range",
        params={"fromDate": "2024-02-01T00:00:00Z", "toDate": "2024-01-01T00:00:00Z"},
    )

    assert res.status_code == 400
    assert res.json()["error"]["code"] == INVALID_DATE_RANGE


async def test_by_date_range_to_date_is_optional(client):
    await _create(client)

    res = await client.get(f"{BASE}/by-date-range", params={"fromDate": "2000-01-01T00:00:00Z"})

    assert res.status_code == 200
    assert len(res.json()) == 1


async def test_by_date_range_accepts_offset_bounds_at_calendar_edges(client):
    await _create(client)

    res = await client.get(
        f"{BASE}/by-date-range",
        params={
            "fromDate": "0001-01-01T00:00:00+05:00",
            "toDate": "9999-12-31T23:00:00-05:00",
        },
    )

    assert res.status_code == 200
    assert [s["name"] for s in res.json()] == ["Central High"]


async def test_by_date_range_requires_from_date(client):
    res = await client.get(f"{BASE}/by-date-range")

    assert res.status_code == 400
    assert res.json()["error"]["code"] == VALIDATION_ERROR


async def test_as_of_returns_version(client):
    created = await _create(client)

    res = await client.get(
        f"{BASE}/{created['id']}/as-of", params={"at": created["validFrom"]},
    )

    assert res.status_code == 200
    assert res.json()["id"] == created["id"]


async def test_as_of_before_creation_is_404(client):
    created = await _create(client)

    res = await client.get(
        f"{BASE}/{created['id']}/as-of", params={"at": "2000-01-01T00:00:00Z"},
    )

    assert res.status_code == 404


async def test_error_message_is_localized(client):
    res = await client.get(f"{BASE}/404", headers={"Accept-Language": "fr-FR,en;q=0.5"})

    assert res.json()["error"]["message"] == "L'ecole demandee est introuvable."


async def test_error_message_defaults_to_english(client):
    res = await client.get(f"{BASE}/404")

    assert res.json()["error"]["message"] == "The requested school was not found."


async def test_error_carries_correlation_id(client):
    res = await client.get(f"{BASE}/404", headers={"X-Correlation-ID": "trace-42"})

    assert res.headers["x-correlation-id"] == "trace-42"
    assert res.json()["error"]["correlation_id"] == "trace-42"


async def test_unhandled_exception_is_generic_500(app_factory, client_for):
    app = app_factory("default")
    service = AsyncMock()
    service.get_all_schools.side_effect = RuntimeError("secret detail")
    app.state.school_service = service

    async with client_for(app, raise_app_exceptions=False) as c:
        res = await c.get(BASE)

    assert res.status_code == 500
    assert res.json()["error"]["code"] == INTERNAL_ERROR
    assert "secret detail" not in res.text
