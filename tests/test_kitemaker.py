"""Tests for KitemakerClient using pytest-httpx."""

import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from pb2km.kitemaker import KitemakerAPIError, KitemakerClient
from pb2km.models import Space
from pb2km.settings import DEFAULT_HOST, ImporterSettings

ENDPOINT = f"{DEFAULT_HOST}/developers/graphql"


def _settings(token: str = "km_test_token", host: str = DEFAULT_HOST) -> ImporterSettings:
    return ImporterSettings(token=token, host=host)  # type: ignore[call-arg]


_SPACE_NODE = {
    "id": "space_1",
    "name": "Engineering",
    "statuses": [
        {"id": "st_todo", "name": "Todo"},
        {"id": "st_done", "name": "Done"},
    ],
}


class TestInit:
    def test_missing_token_raises(self) -> None:
        with pytest.raises(RuntimeError, match="token is required"):
            KitemakerClient(ImporterSettings(token=None))  # type: ignore[call-arg]

    def test_endpoint_from_host(self) -> None:
        client = KitemakerClient(_settings(host="http://localhost:3000/"))
        assert client.endpoint == "http://localhost:3000/developers/graphql"


class TestGetSpace:
    def test_returns_space(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"spaceByKey": _SPACE_NODE}})
        space = KitemakerClient(_settings()).get_space("ENG")

        assert isinstance(space, Space)
        assert space.name == "Engineering"
        assert [s.name for s in space.statuses] == ["Todo", "Done"]

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Authorization"] == "Bearer km_test_token"
        assert json.loads(request.content)["variables"] == {"spaceKey": "ENG"}

    def test_not_found_returns_none(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"spaceByKey": None}})
        assert KitemakerClient(_settings()).get_space("NOPE") is None


class TestCreateWorkItem:
    def test_sends_timestamps_and_returns_id(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=ENDPOINT,
            json={"data": {"createWorkItem": {"workItem": {"id": "wi_1"}}}},
        )
        client = KitemakerClient(_settings())
        work_item_id = client.create_work_item("space_1", "Dark mode", "desc", "st_todo", "2023-01-01T00:00:00Z")

        assert work_item_id == "wi_1"
        request = httpx_mock.get_request()
        assert request is not None
        variables = json.loads(request.content)["variables"]
        assert variables == {
            "spaceId": "space_1",
            "title": "Dark mode",
            "description": "desc",
            "statusId": "st_todo",
            "createdAt": "2023-01-01T00:00:00Z",
            "updatedAt": "2023-01-01T00:00:00Z",
        }


class TestCreateCompany:
    def test_returns_id(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"createCompany": {"company": {"id": "co_1"}}}})
        assert KitemakerClient(_settings()).create_company("Acme") == "co_1"


class TestCreateFeedback:
    def test_sends_links_and_null_company(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"createFeedback": {"feedback": {"id": "fb_1"}}}})
        client = KitemakerClient(_settings())
        feedback_id = client.create_feedback("Title", "Body", None, ["wi_1"], "2023-04-01")

        assert feedback_id == "fb_1"
        request = httpx_mock.get_request()
        assert request is not None
        variables = json.loads(request.content)["variables"]
        assert variables["companyId"] is None
        assert variables["linkInsightToEntityIds"] == ["wi_1"]
        assert variables["createdAt"] == variables["updatedAt"] == "2023-04-01"


class TestGqlError:
    def test_errors_without_data_raise(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, json={"errors": [{"message": "Space is archived"}]})
        with pytest.raises(KitemakerAPIError, match="Space is archived") as exc_info:
            KitemakerClient(_settings()).create_company("Acme")
        assert exc_info.value.errors == [{"message": "Space is archived"}]

    def test_errors_with_data_are_tolerated(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=ENDPOINT,
            json={
                "data": {"createCompany": {"company": {"id": "co_1"}}},
                "errors": [{"message": "deprecated field"}],
            },
        )
        assert KitemakerClient(_settings()).create_company("Acme") == "co_1"

    def test_graphql_error_on_bad_request(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=ENDPOINT,
            status_code=400,
            json={"errors": [{"message": "Variable $title of required type String! was not provided"}]},
        )
        with pytest.raises(KitemakerAPIError, match="was not provided"):
            KitemakerClient(_settings()).create_company("Acme")

    def test_unauthorized_raises(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, status_code=401, text="Unauthorized")
        with pytest.raises(KitemakerAPIError, match="401"):
            KitemakerClient(_settings()).get_space("ENG")

    def test_server_error_without_body_raises_http_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=ENDPOINT, status_code=502, text="Bad gateway")
        with pytest.raises(httpx.HTTPStatusError):
            KitemakerClient(_settings()).get_space("ENG")
