from conftest import all_contacts
from services import StorageFailure


async def test_identify_returns_consolidated_contact(client):
    first = await client.post("/identify", json={"email": "lorraine@hillvalley.edu", "phoneNumber": "123456"})
    second = await client.post("/identify", json={"email": "mcfly@hillvalley.edu", "phoneNumber": "123456"})

    assert first.status_code == 200
    assert second.status_code == 200
    contact = second.json()["contact"]
    assert contact["primaryContactId"] == first.json()["contact"]["primaryContactId"]
    assert contact["emails"] == ["lorraine@hillvalley.edu", "mcfly@hillvalley.edu"]
    assert contact["phoneNumbers"] == ["123456"]
    assert len(contact["secondaryContactIds"]) == 1


async def test_identify_accepts_numeric_phone_number(client):
    response = await client.post("/identify", json={"email": None, "phoneNumber": 123456})

    assert response.status_code == 200
    assert response.json()["contact"]["phoneNumbers"] == ["123456"]
    assert response.json()["contact"]["emails"] == []


async def test_identify_without_identifiers_is_client_error(client, db):
    for body in ({}, {"email": None, "phoneNumber": None}, {"email": "", "phoneNumber": "  "}):
        response = await client.post("/identify", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    assert await all_contacts(db) == []


async def test_identify_with_malformed_body_is_client_error(client, db):
    response = await client.post("/identify", json={"email": ["not", "a", "string"]})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["details"]["errors"][0]["field"].endswith("email")
    assert await all_contacts(db) == []


async def test_identify_storage_failure_is_server_error(client):
    import main

    class FailingResolver:
        async def resolve(self, email, phone):
            raise StorageFailure("Unable to process identity reconciliation request")

    main.app.dependency_overrides[main.get_identity_resolver] = lambda: FailingResolver()

    response = await client.post("/identify", json={"email": "doc@fluxcapacitor.com"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "StorageFailure",
        "message": "Unable to process identity reconciliation request",
    }


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Contact Identity Resolver is running"


async def test_health_reports_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == {"status": "connected", "dialect": "sqlite"}


async def test_identify_rejects_unrepresentable_numeric_phone(client, db):
    for raw in ('{"phoneNumber": 1e400}', '{"phoneNumber": 1e30}', '{"phoneNumber": 12.5}'):
        response = await client.post(
            "/identify", content=raw, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    assert await all_contacts(db) == []


async def test_identify_rejects_values_longer_than_columns(client, db):
    for body in ({"phoneNumber": "1" * 21}, {"email": "a" * 250 + "@hillvalley.edu"}):
        response = await client.post("/identify", json=body)

        assert response.status_code == 400

    assert await all_contacts(db) == []
