import inspect
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from whitecollar.infrastructure.database.database import get_session
from whitecollar.main import app
from whitecollar.presentation.api_routes import api_create_picture

BASE_URL = "http://testserver"
ENTRY_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2} (AM|PM)$")


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _create_shop(client: TestClient, name: str = "Prado", capacity: int = 2) -> int:
    response = client.post("/shops", json={"name": name, "capacity": capacity})
    assert response.status_code == 201
    return response.json()["id"]


def _add_picture(client: TestClient, target_shop_id: int, **fields):
    payload = {"name": "Las Meninas", "author": "Velázquez", "price": "1500.00"}
    payload.update(fields)
    return client.post(f"/shops/{target_shop_id}/pictures", json=payload)


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_shop(client: TestClient):
    response = client.post("/shops", json={"name": "Galeria", "capacity": 10})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Galeria"
    assert data["capacity"] == 10
    shop_url = f"{BASE_URL}/shops/{data['id']}"
    assert response.headers["location"] == shop_url
    assert data["_links"]["self"]["href"] == shop_url
    assert data["_links"]["all"]["href"] == f"{BASE_URL}/shops"
    assert data["_links"]["pictures"]["href"] == f"{shop_url}/pictures"


def test_list_shops(client: TestClient):
    first = _create_shop(client, "First")
    second = _create_shop(client, "Second", capacity=0)

    response = client.get("/shops")

    assert response.status_code == 200
    data = response.json()
    shops = data["_embedded"]["shops"]
    assert [shop["id"] for shop in shops] == [first, second]
    assert shops[1]["capacity"] == 0
    assert data["_links"]["self"]["href"] == f"{BASE_URL}/shops"


def test_list_shops_empty(client: TestClient):
    response = client.get("/shops")

    assert response.status_code == 200
    assert response.json()["_embedded"]["shops"] == []


def test_get_shop(client: TestClient):
    shop_id = _create_shop(client, "Lookup", capacity=4)

    response = client.get(f"/shops/{shop_id}")

    assert response.status_code == 200
    assert response.json()["name"] == "Lookup"


def test_get_unknown_shop(client: TestClient):
    response = client.get("/shops/999")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["detail"] == "Could not find shop 999"


def test_add_picture(client: TestClient):
    """Covers:
    - First picture of a shop gets id 1
    - The response carries the shop capacity, links and formatted entry date
    """
    shop_id = _create_shop(client, capacity=3)

    response = _add_picture(client, shop_id)

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == 1
    assert data["shop_id"] == shop_id
    assert data["shop_capacity"] == 3
    assert data["author"] == "Velázquez"
    assert Decimal(str(data["price"])) == Decimal("1500.00")
    assert ENTRY_DATE_PATTERN.match(data["entry_date"])

    picture_url = f"{BASE_URL}/shops/{shop_id}/pictures/1"
    assert response.headers["location"] == picture_url
    assert data["_links"]["self"]["href"] == picture_url
    assert data["_links"]["all"]["href"] == f"{BASE_URL}/shops/{shop_id}/pictures"
    assert data["_links"]["delete"]["href"] == f"{BASE_URL}/shops/{shop_id}/pictures"


def test_add_picture_formats_given_entry_date(client: TestClient):
    shop_id = _create_shop(client)

    response = _add_picture(client, shop_id, entry_date="2024-03-01T14:05:09")

    assert response.status_code == 201
    assert response.json()["entry_date"] == "01/03/2024 02:05:09 PM"


def test_add_picture_shows_entry_date_in_utc(client: TestClient):
    shop_id = _create_shop(client)

    response = _add_picture(client, shop_id, entry_date="2024-03-01T14:05:09+02:00")

    assert response.status_code == 201
    assert response.json()["entry_date"] == "01/03/2024 12:05:09 PM"


def test_add_picture_with_default_entry_date_reads_back(client: TestClient):
    shop_id = _create_shop(client)
    created = _add_picture(client, shop_id).json()

    response = client.get(f"/shops/{shop_id}/pictures/1")

    assert response.status_code == 200
    assert response.json()["entry_date"] == created["entry_date"]
    assert ENTRY_DATE_PATTERN.match(response.json()["entry_date"])


def test_add_picture_without_author_is_anonymous(client: TestClient):
    shop_id = _create_shop(client)

    response = _add_picture(client, shop_id, author="")

    assert response.status_code == 201
    assert response.json()["author"] == "ANONYMOUS"


def test_add_picture_ignores_client_ids(client: TestClient):
    shop_id = _create_shop(client)
    other_shop_id = _create_shop(client, "Other")

    response = _add_picture(client, shop_id, id=42, shop_id=other_shop_id)

    assert response.status_code == 201
    assert response.json()["id"] == 1
    assert response.json()["shop_id"] == shop_id
    assert client.get(f"/shops/{other_shop_id}/pictures").status_code == 204


def test_full_shop_rejects_picture(client: TestClient):
    """Capacity 2: the third picture is rejected and the shop still holds two."""
    shop_id = _create_shop(client, capacity=2)
    assert _add_picture(client, shop_id, name="A").json()["id"] == 1
    assert _add_picture(client, shop_id, name="B").json()["id"] == 2

    response = _add_picture(client, shop_id, name="C")

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "insufficient_capacity"
    assert data["title"] == "Please select another shop."
    assert data["detail"] == "The store does not have enough capacity."
    assert data["capacity"] == 2
    assert data["occupancy"] == 2
    assert data["instance"] == f"/shops/{shop_id}/pictures"

    listing = client.get(f"/shops/{shop_id}/pictures").json()
    assert len(listing["_embedded"]["pictures"]) == 2


def test_zero_capacity_shop_rejects_every_picture(client: TestClient):
    shop_id = _create_shop(client, capacity=0)

    response = _add_picture(client, shop_id)

    assert response.status_code == 400
    assert response.json()["code"] == "insufficient_capacity"


def test_add_picture_to_unknown_shop(client: TestClient):
    response = _add_picture(client, 404)

    assert response.status_code == 404
    assert response.json()["code"] == "resource_not_found"


def test_list_pictures(client: TestClient):
    shop_id = _create_shop(client, capacity=3)
    _add_picture(client, shop_id, name="A")
    _add_picture(client, shop_id, name="B")

    response = client.get(f"/shops/{shop_id}/pictures")

    assert response.status_code == 200
    data = response.json()
    pictures = data["_embedded"]["pictures"]
    assert [p["id"] for p in pictures] == [1, 2]
    assert [p["name"] for p in pictures] == ["A", "B"]
    assert all(p["shop_capacity"] == 3 for p in pictures)
    assert data["_links"]["self"]["href"] == f"{BASE_URL}/shops/{shop_id}/pictures"


def test_list_pictures_of_empty_shop_is_no_content(client: TestClient):
    shop_id = _create_shop(client)

    response = client.get(f"/shops/{shop_id}/pictures")

    assert response.status_code == 204
    assert response.content == b""


def test_list_pictures_of_unknown_shop(client: TestClient):
    response = client.get("/shops/999/pictures")

    assert response.status_code == 404


def test_delete_all_pictures(client: TestClient):
    """Removing a shop's pictures leaves other shops alone and frees capacity."""
    shop_id = _create_shop(client, capacity=2)
    sibling_id = _create_shop(client, "Sibling", capacity=2)
    _add_picture(client, shop_id, name="A")
    _add_picture(client, shop_id, name="B")
    _add_picture(client, sibling_id, name="S")

    response = client.delete(f"/shops/{shop_id}/pictures")

    assert response.status_code == 204
    assert client.get(f"/shops/{shop_id}/pictures").status_code == 204
    sibling = client.get(f"/shops/{sibling_id}/pictures").json()
    assert [p["name"] for p in sibling["_embedded"]["pictures"]] == ["S"]

    # Numbering restarts once the shop is empty
    assert _add_picture(client, shop_id, name="C").json()["id"] == 1


def test_delete_all_pictures_of_unknown_shop(client: TestClient):
    response = client.delete("/shops/999/pictures")

    assert response.status_code == 404


def test_get_picture(client: TestClient):
    shop_id = _create_shop(client)
    _add_picture(client, shop_id, name="Target")

    response = client.get(f"/shops/{shop_id}/pictures/1")

    assert response.status_code == 200
    assert response.json()["name"] == "Target"


def test_get_unknown_picture(client: TestClient):
    shop_id = _create_shop(client)

    response = client.get(f"/shops/{shop_id}/pictures/5")

    assert response.status_code == 404
    assert response.json()["title"] == "Picture not found"


def test_delete_single_picture(client: TestClient):
    shop_id = _create_shop(client, capacity=3)
    _add_picture(client, shop_id, name="A")
    _add_picture(client, shop_id, name="B")

    response = client.delete(f"/shops/{shop_id}/pictures/2")

    assert response.status_code == 204
    assert client.get(f"/shops/{shop_id}/pictures/2").status_code == 404
    # The highest id was freed, so it is handed out again
    assert _add_picture(client, shop_id, name="C").json()["id"] == 2


@pytest.mark.parametrize("shop_id", ["0", "-1", str(2**63), str(10**20)])
def test_out_of_range_shop_id_is_rejected(client: TestClient, shop_id: str):
    response = client.get(f"/shops/{shop_id}/pictures")

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "path.shop_id"


def test_largest_shop_id_is_not_found(client: TestClient):
    response = client.get(f"/shops/{2**63 - 1}/pictures")

    assert response.status_code == 404


def test_out_of_range_picture_id_is_rejected(client: TestClient):
    shop_id = _create_shop(client)

    response = client.get(f"/shops/{shop_id}/pictures/{10**20}")

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "path.picture_id"


@pytest.fixture(name="threaded_client")
def threaded_client_fixture(file_engine):
    """Client whose requests each get their own session on a shared file db."""

    def get_session_override():
        with Session(file_engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_admission_endpoint_runs_in_threadpool():
    assert not inspect.iscoroutinefunction(api_create_picture)


def test_concurrent_requests_respect_capacity(threaded_client: TestClient):
    """Six simultaneous submissions to a shop with room for three."""
    shop_id = _create_shop(threaded_client, "Crowded", capacity=3)
    start = threading.Barrier(6)

    def submit(index: int):
        start.wait()
        return _add_picture(threaded_client, shop_id, name=f"P{index}")

    with ThreadPoolExecutor(max_workers=6) as pool:
        responses = list(pool.map(submit, range(6)))

    created = [r for r in responses if r.status_code == 201]
    rejected = [r for r in responses if r.status_code == 400]
    assert sorted(r.json()["id"] for r in created) == [1, 2, 3]
    assert len(rejected) == 3
    assert all(r.json()["code"] == "insufficient_capacity" for r in rejected)
    listing = threaded_client.get(f"/shops/{shop_id}/pictures").json()
    assert len(listing["_embedded"]["pictures"]) == 3
