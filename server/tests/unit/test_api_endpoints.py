"""Integration tests for API endpoints."""

import pytest

ADMIN = ("admin-1", ["admin"])


@pytest.fixture
def admin_headers(headers_for):
    return headers_for(*ADMIN)


@pytest.fixture
def reserve_payload(trip, passenger):
    return {"trip_id": trip.id, "seat_id": "1A", **passenger}


@pytest.mark.asyncio
async def test_create_route_endpoint(test_client, admin_headers):
    response = await test_client.post(
        "/v1/route/create",
        json={"origin": " Colombo ", "destination": "Jaffna"},
        headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["origin"] == "Colombo"
    assert data["destination"] == "Jaffna"
    assert data["label"] == "Colombo ➝ Jaffna"
    assert data["is_active"] is True
    assert "id" in data


@pytest.mark.asyncio
async def test_create_route_duplicate(test_client, admin_headers, route):
    response = await test_client.post(
        "/v1/route/create",
        json={"origin": route.origin, "destination": route.destination},
        headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["conflicting_resource"]["id"] == route.id


@pytest.mark.asyncio
async def test_create_route_missing_auth(test_client):
    response = await test_client.post("/v1/route/create", json={"origin": "Colombo", "destination": "Kandy"})

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_create_route_requires_admin(test_client, headers_for):
    response = await test_client.post(
        "/v1/route/create",
        json={"origin": "Colombo", "destination": "Kandy"},
        headers=headers_for("user-1")
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_route_invalid_data(test_client, admin_headers):
    response = await test_client.post(
        "/v1/route/create",
        json={"origin": "A", "destination": "Kandy"},
        headers=admin_headers
    )

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert data["violations"][0]["path"] == "body.origin"


@pytest.mark.asyncio
async def test_list_routes_hides_disabled_from_passengers(test_client, headers_for, admin_headers, store, route):
    disabled = await store.add_route("Galle", "Matara")
    await test_client.post(
        "/v1/route/set-active",
        json={"route_id": disabled.id, "is_active": False},
        headers=admin_headers
    )

    passenger_view = await test_client.get("/v1/route/list", headers=headers_for("user-1"))
    admin_view = await test_client.get("/v1/route/list?include_inactive=true", headers=admin_headers)

    assert [item["id"] for item in passenger_view.json()] == [route.id]
    assert {item["id"] for item in admin_view.json()} == {route.id, disabled.id}


@pytest.mark.asyncio
async def test_create_and_search_trips(test_client, admin_headers, headers_for, route):
    created = await test_client.post(
        "/v1/trip/create",
        json={"route_id": route.id, "date": "2030-01-15", "time": "07:45", "price": 1500},
        headers=admin_headers
    )
    assert created.status_code == 201
    trip = created.json()
    assert trip["seat_count"] == 44
    assert trip["date"] == "2030-01-15"

    response = await test_client.post(
        "/v1/trip/search",
        json={"route_id": route.id, "date": "2030-01-15"},
        headers=headers_for("user-1")
    )

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [trip["id"]]


@pytest.mark.asyncio
async def test_create_trip_unknown_route(test_client, admin_headers):
    response = await test_client.post(
        "/v1/trip/create",
        json={"route_id": "missing", "date": "2030-01-15", "time": "07:45", "price": 1500},
        headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["resource_type"] == "route"


@pytest.mark.asyncio
async def test_trip_layout(test_client, headers_for, trip):
    response = await test_client.get(f"/v1/trip/{trip.id}/layout", headers=headers_for("user-1"))

    assert response.status_code == 200
    data = response.json()
    assert data["capacity"] == 44
    assert data["layout"][:5] == ["1A", "1B", "AISLE", "1C", "1D"]
    assert len(data["rows"]) == 11


@pytest.mark.asyncio
async def test_layout_for_capacity(test_client):
    response = await test_client.get("/v1/layout", params={"capacity": 53, "rear_bench": 5})

    assert response.status_code == 200
    assert response.json()["rows"][-1] == ["49", "50", "51", "52", "53"]

    invalid = await test_client.get("/v1/layout", params={"capacity": 0})
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "VALIDATION_FAILED"


@pytest.mark.asyncio
async def test_reserve_seat_endpoint(test_client, headers_for, reserve_payload, trip):
    response = await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == f"{trip.id}_1A"
    assert data["status"] == "held"
    assert data["user_id"] == "user-1"
    assert data["route_label"] == "Colombo ➝ Kandy"


@pytest.mark.asyncio
async def test_reserve_taken_seat_endpoint(test_client, headers_for, reserve_payload):
    await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    response = await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-2"))

    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "SEAT_TAKEN"
    assert data["retryable"] is False
    assert data["conflicting_resource"]["seat_id"] == "1A"


@pytest.mark.asyncio
async def test_reserve_invalid_phone(test_client, headers_for, reserve_payload):
    reserve_payload["passenger_phone"] = "12345"

    response = await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    assert response.status_code == 400
    assert "passenger_phone" in response.json()["errors"]


@pytest.mark.asyncio
async def test_cancel_reservation_endpoint(test_client, headers_for, reserve_payload):
    created = (await test_client.post(
        "/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1")
    )).json()

    forbidden = await test_client.post(
        "/v1/reservation/cancel", json={"reservation_id": created["id"]}, headers=headers_for("user-2")
    )
    assert forbidden.status_code == 403

    response = await test_client.post(
        "/v1/reservation/cancel", json={"reservation_id": created["id"]}, headers=headers_for("user-1")
    )
    assert response.status_code == 200
    assert response.json()["status"] == "retracted"

    again = await test_client.post(
        "/v1/reservation/cancel", json={"reservation_id": created["id"]}, headers=headers_for("user-1")
    )
    assert again.status_code == 200
    assert again.json()["status"] == "retracted"


@pytest.mark.asyncio
async def test_cancel_missing_reservation_endpoint(test_client, headers_for):
    response = await test_client.post(
        "/v1/reservation/cancel", json={"reservation_id": "missing_1A"}, headers=headers_for("user-1")
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_my_and_recent_reservations(test_client, headers_for, admin_headers, reserve_payload):
    await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))
    await test_client.post(
        "/v1/reservation/reserve", json={**reserve_payload, "seat_id": "1B"}, headers=headers_for("user-2")
    )

    mine = await test_client.get("/v1/reservation/mine", headers=headers_for("user-1"))
    assert [item["seat_id"] for item in mine.json()["items"]] == ["1A"]

    forbidden = await test_client.get("/v1/reservation/recent", headers=headers_for("user-1"))
    assert forbidden.status_code == 403

    recent = await test_client.get("/v1/reservation/recent", headers=admin_headers)
    assert recent.status_code == 200
    assert {item["seat_id"] for item in recent.json()["items"]} == {"1A", "1B"}


@pytest.mark.asyncio
async def test_admin_retract_and_delete(test_client, headers_for, admin_headers, reserve_payload, store):
    created = (await test_client.post(
        "/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1")
    )).json()

    retracted = await test_client.post(
        "/v1/reservation/retract", json={"reservation_id": created["id"]}, headers=admin_headers
    )
    assert retracted.json()["status"] == "retracted"

    deleted = await test_client.post(
        "/v1/reservation/delete", json={"reservation_id": created["id"]}, headers=admin_headers
    )
    assert deleted.status_code == 204
    assert await store.get_reservation(created["id"]) is None


@pytest.mark.asyncio
async def test_availability_snapshot_endpoint(test_client, headers_for, reserve_payload, trip):
    await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    response = await test_client.get(f"/v1/availability/{trip.id}", headers=headers_for("user-2"))

    assert response.status_code == 200
    assert response.json() == {"trip_id": trip.id, "capacity": 44, "occupied": ["1A"], "available": 43}


@pytest.mark.asyncio
async def test_availability_stream_unknown_trip(test_client, headers_for):
    response = await test_client.get("/v1/availability/missing/stream", headers=headers_for("user-1"))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_schedule_endpoint(test_client, headers_for, admin_headers, reserve_payload, trip, store):
    await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    forbidden = await test_client.post(
        "/v1/admin/schedule/delete", json={"trip_id": trip.id}, headers=headers_for("user-1")
    )
    assert forbidden.status_code == 403

    response = await test_client.post("/v1/admin/schedule/delete", json={"trip_id": trip.id}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"routes_deleted": 0, "trips_deleted": 1, "reservations_deleted": 1, "batches": [1]}
    assert await store.get_trip(trip.id) is None


@pytest.mark.asyncio
async def test_delete_route_endpoint(test_client, admin_headers, route, trip, store):
    response = await test_client.post("/v1/admin/route/delete", json={"route_id": route.id}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["routes_deleted"] == 1
    assert response.json()["trips_deleted"] == 1
    assert await store.get_route(route.id) is None


@pytest.mark.asyncio
async def test_purge_reservations_endpoint(test_client, headers_for, admin_headers, reserve_payload):
    await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    response = await test_client.post("/v1/admin/reservations/purge", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["reservations_deleted"] == 1


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client, headers_for, reserve_payload):
    await test_client.post("/v1/reservation/reserve", json=reserve_payload, headers=headers_for("user-1"))

    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert "seat_reservations_claimed_total" in response.text
    assert "availability_subscriptions_active" in response.text
