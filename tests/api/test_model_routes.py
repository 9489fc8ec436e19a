"""HTTP tests for generated model routes.

Wires the model_routes fixture models (employee, manager, user) and the v1
API, then exercises the default CRUD surface through TestClient.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

FIRST_NAMES = ["Bob", "Bobby", "Barbara"]
LAST_NAMES = ["Loblaw", "Loblow", "Loblew", "Lobluw"]

USERS = [
    {"id": i + 1, "firstName": FIRST_NAMES[i % 3], "lastName": LAST_NAMES[i % 4]}
    for i in range(25)
]

BOB = {"id": 1, "firstName": "Bob", "lastName": "Loblaw"}


@pytest.fixture
def oryx(make_oryx):
    instance = make_oryx()
    names, apis = asyncio.run(
        instance.autowire(models={"path": "model_routes"})
    )
    assert names == ["employee", "manager", "user"]
    assert apis == ["v1"]
    return instance


@pytest.fixture
def client(oryx):
    return TestClient(oryx.app)


@pytest.fixture
def seeded(client):
    """Client with 25 users created."""
    response = client.post("/api/v1/user", json=USERS)
    assert response.status_code == 201
    assert response.json() == {"success": True, "result": USERS}
    return client


@pytest.mark.api
class TestCustomRoutes:
    """Test custom, included and excluded routes."""

    def test_custom_route(self, client):
        """Test a model can add its own route."""
        response = client.get("/api/v1/user/custom_route")

        assert response.status_code == 200
        assert response.json() == {"message": "aloha!"}

    def test_include_and_exclude(self, client):
        """Test excluded routes are not attached."""
        assert client.get("/api/v1/manager/1").status_code == 404
        assert client.get("/api/v1/manager").status_code == 200

    def test_override_default_route(self, client):
        """Test a custom route replaces the default handler."""
        assert client.get("/api/v1/manager").json() == {"model": "manager"}

    def test_glob_and_regex_filters(self, client):
        """Test the active routes reported by GET /info."""
        response = client.get("/api/v1/employee/info")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "result": {
                "name": "employee",
                "schema": {
                    "firstName": {"type": "string"},
                    "lastName": {"type": "string"},
                    "id": {
                        "autoIncrement": True,
                        "primaryKey": True,
                        "type": "integer",
                        "unique": True,
                    },
                },
                "routes": [
                    "POST /",
                    "PUT /",
                    "GET /info",
                    "POST /:id",
                    "PUT /:id",
                    "DELETE /:id",
                ],
            },
        }

    def test_filtered_routes_are_not_reachable(self, client):
        """Test routes outside the filter are never mounted."""
        assert client.get("/api/v1/employee").status_code == 405
        assert client.get("/api/v1/employee/count").status_code == 405
        assert client.delete("/api/v1/employee").status_code == 405

    def test_user_info_lists_custom_routes_last(self, client):
        """Test custom-only keys follow the default table."""
        routes = client.get("/api/v1/user/info").json()["result"]["routes"]

        assert routes[0] == "GET /"
        assert routes[-1] == "GET /custom_route"
        assert "WRONG /custom_route" not in routes
        assert len(routes) == 12


@pytest.mark.api
class TestCollectionRoutes:
    """Test routes acting on many records."""

    def test_create_one(self, client):
        response = client.post("/api/v1/user", json=BOB)

        assert response.status_code == 201
        assert response.json() == {"success": True, "result": BOB}

    def test_create_several(self, client):
        users = [BOB, {"id": 2, "firstName": "Bobby", "lastName": "Loblaw"}]

        response = client.post("/api/v1/user", json=users)

        assert response.status_code == 201
        assert response.json()["result"] == users

    def test_list_defaults_to_ten(self, seeded):
        """Test GET / returns one page of 10 records."""
        assert len(seeded.get("/api/v1/user").json()["result"]) == 10

    def test_list_with_limit(self, seeded):
        assert len(seeded.get("/api/v1/user", params={"limit": 25}).json()["result"]) == 25

    @pytest.mark.parametrize(
        "params",
        [
            {"select": "id", "limit": 1},
            {"select": '["id"]', "limit": 1},
        ],
    )
    def test_single_field_projection(self, seeded, params):
        """Test select as a plain value and as JSON."""
        assert seeded.get("/api/v1/user", params=params).json()["result"] == [{"id": 1}]

    @pytest.mark.parametrize(
        "url",
        [
            "/api/v1/user?select=id&select=firstName&limit=1",
            "/api/v1/user?select[]=id&select[]=firstName&limit=1",
        ],
    )
    def test_multiple_field_projection(self, seeded, url):
        """Test repeated and bracketed select parameters."""
        assert seeded.get(url).json()["result"] == [{"id": 1, "firstName": "Bob"}]

    @pytest.mark.parametrize(
        ("sort", "expected"),
        [
            ("firstName", "Barbara"),
            ("firstName DESC", "Bobby"),
            ('{"firstName": "ASC"}', "Barbara"),
            ('{"firstName": "DESC"}', "Bobby"),
        ],
    )
    def test_sort(self, seeded, sort, expected):
        """Test string and JSON sort parameters."""
        result = seeded.get("/api/v1/user", params={"limit": 3, "sort": sort}).json()["result"]

        assert [r["firstName"] for r in result] == [expected] * 3

    def test_query_by_key_value(self, seeded):
        """Test unknown parameters filter by equality."""
        result = seeded.get(
            "/api/v1/user", params={"firstName": "Bob", "select": "firstName"}
        ).json()["result"]

        assert result == [{"firstName": "Bob"}] * 9

    def test_query_by_json_where(self, seeded):
        result = seeded.get(
            "/api/v1/user", params={"where": '{"firstName": "Bob"}'}
        ).json()["result"]

        assert len(result) == 9
        assert {r["firstName"] for r in result} == {"Bob"}

    def test_pagination(self, seeded):
        """Test skip and limit page through matching records."""
        result = seeded.get(
            "/api/v1/user", params={"firstName": "Bob", "skip": 4, "limit": 5}
        ).json()["result"]

        assert [r["id"] for r in result] == [13, 16, 19, 22, 25]

    def test_body_where_seeds_query(self, seeded):
        """Test a where clause in the body filters GET /."""
        response = seeded.request(
            "GET", "/api/v1/user", json={"where": {"lastName": "Lobluw"}}, params={"limit": 25}
        )

        assert {r["lastName"] for r in response.json()["result"]} == {"Lobluw"}

    @pytest.mark.parametrize("where", ["5", "invalid string"])
    def test_invalid_where(self, seeded, where):
        """Test unusable where clauses are rejected with 400."""
        response = seeded.get("/api/v1/user", params={"where": where})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "statusCode": 400,
            "error": {
                "name": "InvalidQueryError",
                "message": "Invalid 'where' parameter specified!",
            },
        }

    def test_mass_update(self, seeded):
        """Test PUT / updates every match, ignoring the page size."""
        response = seeded.put(
            "/api/v1/user",
            params={"where[lastName][!]": "Loblaw"},
            json={"lastName": "Loblaw"},
        )

        assert response.json() == {"success": True, "result": {"docs_updated": 18}}
        result = seeded.get("/api/v1/user", params={"limit": 25}).json()["result"]
        assert {r["lastName"] for r in result} == {"Loblaw"}

    def test_update_with_limit(self, seeded):
        response = seeded.put("/api/v1/user?limit=1", json={"lastName": "Loblaw"})

        assert response.json() == {"success": True, "result": {"docs_updated": 1}}

    def test_update_without_body(self, seeded):
        """Test PUT / requires a body."""
        response = seeded.put("/api/v1/user")

        assert response.status_code == 400
        assert response.json()["error"] == {
            "name": "OryxError",
            "message": "No body provided!",
        }

    def test_invalid_json_body(self, client):
        """Test malformed JSON is a 400 validation error."""
        response = client.post(
            "/api/v1/user", content=b"{not json", headers={"Content-Type": "text/plain"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid JSON body"

    def test_remove_all(self, seeded):
        """Test DELETE / is not limited to one page."""
        response = seeded.delete("/api/v1/user")

        assert response.json() == {"success": True, "result": {"docs_removed": 25}}

    def test_remove_with_limit(self, seeded):
        response = seeded.delete("/api/v1/user?limit=10")

        assert response.json() == {"success": True, "result": {"docs_removed": 10}}

    def test_remove_with_sort(self, seeded):
        """Test sort picks which records a limited delete removes."""
        response = seeded.delete("/api/v1/user?limit=8&sort=firstName")

        assert response.json() == {"success": True, "result": {"docs_removed": 8}}
        result = seeded.get("/api/v1/user", params={"limit": 25}).json()["result"]
        assert len(result) == 17
        assert "Barbara" not in {r["firstName"] for r in result}

    def test_remove_matching(self, seeded):
        response = seeded.delete("/api/v1/user", params={"where[firstName]": "Barbara"})

        assert response.json() == {"success": True, "result": {"docs_removed": 8}}

    @pytest.mark.parametrize(
        ("params", "expected"),
        [({}, 25), ({"limit": 10}, 10), ({"where": '{"firstName": "Bob"}'}, 9)],
    )
    def test_count(self, seeded, params, expected):
        """Test GET /count honours limit and where."""
        response = seeded.get("/api/v1/user/count", params=params)

        assert response.json() == {"success": True, "result": {"doc_count": expected}}


@pytest.mark.api
class TestDistinct:
    """Test GET /distinct/:field."""

    @pytest.mark.parametrize(
        ("params", "expected"),
        [
            ({}, ["Bob", "Bobby", "Barbara"]),
            ({"limit": 2}, ["Bob", "Bobby"]),
            ({"sort": "firstName"}, ["Barbara", "Bob", "Bobby"]),
            ({"sort": "firstName", "limit": 1}, ["Barbara"]),
            ({"where[firstName][startsWith]": "Bob"}, ["Bob", "Bobby"]),
            (
                {"sort": '{"firstName": "DESC"}', "where[firstName][startsWith]": "Bob"},
                ["Bobby", "Bob"],
            ),
        ],
    )
    def test_distinct_values(self, seeded, params, expected):
        """Test values are de-duplicated in first-seen order."""
        response = seeded.get("/api/v1/user/distinct/firstName", params=params)

        assert response.json() == {"success": True, "result": expected}


@pytest.mark.api
class TestInstanceRoutes:
    """Test routes acting on a single record."""

    def test_get_by_id(self, client):
        client.post("/api/v1/user", json=BOB)

        response = client.get("/api/v1/user/1")

        assert response.status_code == 200
        assert response.json() == {"success": True, "result": BOB}

    def test_get_missing(self, client):
        response = client.get("/api/v1/user/15")

        assert response.status_code == 404
        assert response.json() == {"success": False, "result": {}}

    def test_get_with_invalid_id(self, client):
        """Test ids that cannot be cast are a data layer error."""
        response = client.get("/api/v1/user/abc")

        assert response.status_code == 400
        assert response.json()["error"]["name"] == "DataLayerError"

    def test_update_by_id(self, client):
        client.post("/api/v1/user", json=BOB)

        response = client.put("/api/v1/user/1", json={"firstName": "Bobby"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "result": {**BOB, "firstName": "Bobby"}}

    def test_update_missing(self, client):
        assert client.put("/api/v1/user/15").status_code == 404

    def test_delete_by_id(self, client):
        client.post("/api/v1/user", json=BOB)

        response = client.delete("/api/v1/user/1")

        assert response.json() == {"success": True, "result": {"docs_removed": 1}}
        assert client.get("/api/v1/user/1").status_code == 404

    def test_delete_missing(self, client):
        response = client.delete("/api/v1/user/15")

        assert response.status_code == 404
        assert response.json() == {"success": False, "result": {"docs_removed": 0}}

    def test_find_existing(self, client):
        """Test POST /:id returns the stored record untouched."""
        client.post("/api/v1/user", json=BOB)

        response = client.post(
            "/api/v1/user/1", json={"id": 2, "firstName": "Bobby", "lastName": "Loblaw"}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "result": BOB}

    def test_find_or_create_missing(self, client):
        """Test POST /:id creates the record from the body."""
        response = client.post("/api/v1/user/1", json=BOB)

        assert response.json() == {"success": True, "result": BOB}
        assert client.get("/api/v1/user/count").json()["result"] == {"doc_count": 1}

    def test_user_info(self, client):
        """Test GET /info never exposes disabled timestamps."""
        schema = client.get("/api/v1/user/info").json()["result"]["schema"]

        assert list(schema) == ["firstName", "lastName", "id"]
