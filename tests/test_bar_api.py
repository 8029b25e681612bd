import pytest

from main import create_app
from routes.bar_api import CATCH_ALL_REPLY
from tests.fakes import FakeDriver, make_client

USERS = {"alice": "ABC123"}
INGREDIENTS = [
    [("id", 1), ("name", "lime"), ("quantity", 12), ("unit", "each")],
    [("id", 2), ("name", "rum"), ("quantity", 3), ("unit", "bottle")],
    [("id", 3), ("name", "mint"), ("quantity", 40), ("unit", "leaf")],
]


def bar_db(query):
    sql = query.sql
    if "users_pass" in sql and sql.lstrip().startswith("SELECT"):
        name = query.params["username"]
        return [[("password_hash", USERS[name])]] if name in USERS else []
    if "inventory_item" in sql:
        return INGREDIENTS
    if "SELECT dob" in sql:
        return [[("dob", "1990-01-02")]] if query.params["user_id"] == "1" else []
    if "FROM bars" in sql:
        return [[("id", 7), ("name", "The Cutlass"), ("city", "Reno")]]
    if sql.lstrip().startswith("UPDATE"):
        return []
    raise RuntimeError("Invalid object name")


def failing_db(query):
    raise ConnectionError("database unreachable")


@pytest.mark.asyncio
async def test_login():
    app = create_app(driver=FakeDriver(bar_db))
    async with make_client(app) as client:
        ok = await client.get("/login/alice/ABC123")
        wrong = await client.get("/login/alice/xyz")
        unknown = await client.get("/login/bob/ABC123")

    assert ok.status_code == 200 and ok.json() is True
    assert wrong.status_code == 200 and wrong.json() is False
    assert unknown.status_code == 200 and unknown.json() is False


@pytest.mark.asyncio
async def test_ingredients_returns_rows_in_select_order():
    app = create_app(driver=FakeDriver(bar_db))
    async with make_client(app) as client:
        resp = await client.get("/ingredients")

    assert resp.status_code == 200
    assert resp.json() == [
        [1, "lime", 12, "each"],
        [2, "rum", 3, "bottle"],
        [3, "mint", 40, "leaf"],
    ]


@pytest.mark.asyncio
async def test_dob_binds_user_id_as_given():
    driver = FakeDriver(bar_db)
    app = create_app(driver=driver)
    async with make_client(app) as client:
        found = await client.get("/dob/1")
        missing = await client.get("/dob/abc")

    assert found.json() == [["1990-01-02"]]
    assert missing.status_code == 200
    assert missing.json() == []
    assert driver.submitted[1].params == {"user_id": "abc"}


@pytest.mark.asyncio
async def test_bars_rejects_non_numeric_user_id_without_querying():
    driver = FakeDriver(bar_db)
    app = create_app(driver=driver)
    async with make_client(app) as client:
        for bad in ["abc", "1;DROP", "-1", "1.5"]:
            resp = await client.get(f"/bars/{bad}")
            assert resp.status_code == 400
            assert resp.json() == {"detail": "user_id must be a numeric id"}
        ok = await client.get("/bars/42")

    assert ok.json() == [[7, "The Cutlass", "Reno"]]
    assert len(driver.submitted) == 1
    assert driver.submitted[0].params == {"user_id": 42}


@pytest.mark.asyncio
async def test_read_failure_is_flattened_to_empty_object():
    app = create_app(driver=FakeDriver(failing_db))
    async with make_client(app) as client:
        ingredients = await client.get("/ingredients")
        dob = await client.get("/dob/1")
        login = await client.get("/login/alice/ABC123")

    assert ingredients.status_code == 200 and ingredients.json() == {}
    assert dob.status_code == 200 and dob.json() == {}
    assert login.status_code == 200 and login.json() is False


@pytest.mark.asyncio
async def test_update_endpoints_accept_json_and_forms():
    driver = FakeDriver(bar_db)
    app = create_app(driver=driver)
    async with make_client(app) as client:
        pw = await client.post("/updateUserPassword", json={"username": "alice", "password": "NEW"})
        dob = await client.post("/updatedob", data={"username": "alice", "dob": "1990-01-02"})
        city = await client.post(
            "/updateCityState", json={"username": "alice", "city": "Reno", "state": "NV"}
        )

    assert [pw.json(), dob.json(), city.json()] == [True, True, True]
    params = [q.params for q in driver.submitted]
    assert params == [
        {"password": "NEW", "username": "alice"},
        {"dob": "1990-01-02", "username": "alice"},
        {"city": "Reno", "state": "NV", "username": "alice"},
    ]
    assert all(q.returns_rows is False for q in driver.submitted)


@pytest.mark.asyncio
async def test_update_missing_field_is_rejected():
    driver = FakeDriver(bar_db)
    app = create_app(driver=driver)
    async with make_client(app) as client:
        resp = await client.post("/updateCityState", json={"username": "alice", "city": "Reno"})
        bad_json = await client.post(
            "/updatedob", content=b"{not json", headers={"content-type": "application/json"}
        )

    assert resp.status_code == 422
    assert bad_json.status_code == 400
    assert driver.submitted == []


@pytest.mark.asyncio
async def test_update_failure_is_flattened_to_empty_object():
    app = create_app(driver=FakeDriver(failing_db))
    async with make_client(app) as client:
        resp = await client.post("/updatedob", json={"username": "alice", "dob": "1990-01-02"})

    assert resp.status_code == 200
    assert resp.json() == {}


@pytest.mark.asyncio
async def test_forms_are_served_as_html():
    app = create_app(driver=FakeDriver(bar_db))
    async with make_client(app) as client:
        pw = await client.get("/updateUserPasswordForm")
        dob = await client.get("/updatedob")
        city = await client.get("/updateCityState")

    for resp, action in [(pw, "/updateUserPassword"), (dob, "/updatedob"), (city, "/updateCityState")]:
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert f'action="{action}"' in resp.text


@pytest.mark.asyncio
async def test_unknown_paths_hit_catch_all():
    app = create_app(driver=FakeDriver(bar_db))
    async with make_client(app) as client:
        root = await client.get("/")
        nested = await client.get("/some/where/else")

    assert root.text == CATCH_ALL_REPLY
    assert nested.status_code == 200
    assert nested.text == CATCH_ALL_REPLY


@pytest.mark.asyncio
async def test_cors_allows_any_origin():
    app = create_app(driver=FakeDriver(bar_db))
    async with make_client(app) as client:
        resp = await client.get("/ingredients", headers={"Origin": "http://app.example"})

    assert resp.headers.get("access-control-allow-origin") == "*"


@pytest.mark.asyncio
async def test_lifespan_starts_and_stops_driver():
    driver = FakeDriver(bar_db)
    app = create_app(driver=driver)
    async with app.router.lifespan_context(app):
        assert driver.started is True
        assert driver.stopped is False
    assert driver.stopped is True
