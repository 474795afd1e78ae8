"""Tests for the uniqueness round-trip: endpoint, client and validator."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from formjudge.api import UniquenessQuery, create_app, run_uniqueness_query
from formjudge.config import JudgeConfig
from formjudge.errors import ExposureError, TransportError
from formjudge.exposure import ExposurePolicy
from formjudge.remote import InMemoryUniquenessChecker, UniquenessClient
from formjudge.validation import (
    FieldElement,
    FieldStatus,
    Form,
    ValidationOrchestrator,
    ValidatorRegistry,
    register_builtin_validators,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def policy():
    policy = ExposurePolicy()
    policy.expose("User", "email", "username")
    policy.expose_with_alias("Email", "EmailAttributes")
    policy.expose("Email", "address")
    return policy


@pytest.fixture
def checker():
    return InMemoryUniquenessChecker({
        "User": [
            {"email": "taken@example.com", "username": "alice", "password": "x"},
        ],
        "Email": [{"address": "used@example.com"}],
        "Post": [{"title": "Hello"}],
    })


@pytest.fixture
def config():
    return JudgeConfig(mount_path="/judge", base_url="http://testserver")


@pytest.fixture
def app(policy, checker, config):
    return create_app(checker, policy=policy, config=config)


@pytest.fixture
def http(app):
    with TestClient(app) as client:
        yield client


def make_client(app, config) -> UniquenessClient:
    """A UniquenessClient talking to the app in-process."""
    transport = httpx.ASGITransport(app=app)
    return UniquenessClient(
        httpx.AsyncClient(transport=transport, base_url=config.base_url),
        mount_path=config.mount_path,
    )


# =============================================================================
# run_uniqueness_query
# =============================================================================


class TestRunUniquenessQuery:
    @pytest.mark.asyncio
    async def test_taken(self, policy, checker):
        query = UniquenessQuery(klass="User", attribute="email", value="taken@example.com")
        assert await run_uniqueness_query(query, policy, checker) == ["has already been taken"]

    @pytest.mark.asyncio
    async def test_unique(self, policy, checker):
        query = UniquenessQuery(klass="User", attribute="email", value="new@example.com")
        assert await run_uniqueness_query(query, policy, checker) == []

    @pytest.mark.asyncio
    async def test_custom_message(self, policy, checker):
        query = UniquenessQuery(klass="User", attribute="username", value="alice")
        assert await run_uniqueness_query(query, policy, checker, "is in use") == ["is in use"]

    @pytest.mark.asyncio
    async def test_unexposed_attribute_refused(self, policy, checker):
        query = UniquenessQuery(klass="User", attribute="password", value="x")
        with pytest.raises(ExposureError):
            await run_uniqueness_query(query, policy, checker)

    @pytest.mark.asyncio
    async def test_unexposed_type_refused_even_if_checker_knows_it(self, policy, checker):
        query = UniquenessQuery(klass="Post", attribute="title", value="Hello")
        with pytest.raises(ExposureError):
            await run_uniqueness_query(query, policy, checker)

    @pytest.mark.asyncio
    async def test_exposed_but_unknown_to_checker_refused(self, checker):
        policy = ExposurePolicy()
        policy.expose("Ghost", "name")
        query = UniquenessQuery(klass="Ghost", attribute="name", value="x")
        with pytest.raises(ExposureError):
            await run_uniqueness_query(query, policy, checker)

    @pytest.mark.asyncio
    async def test_alias_resolved(self, policy, checker):
        query = UniquenessQuery(klass="EmailAttributes", attribute="address", value="used@example.com")
        assert await run_uniqueness_query(query, policy, checker) == ["has already been taken"]

    @pytest.mark.asyncio
    async def test_alias_is_checked_against_canonical_exposure(self, policy, checker):
        query = UniquenessQuery(klass="EmailAttributes", attribute="domain", value="x")
        with pytest.raises(ExposureError):
            await run_uniqueness_query(query, policy, checker)

    @pytest.mark.asyncio
    async def test_unchanged_original_value_skips_lookup(self, policy, checker):
        query = UniquenessQuery(
            klass="User",
            attribute="email",
            value="taken@example.com",
            original_value="taken@example.com",
        )
        assert await run_uniqueness_query(query, policy, checker) == []

    @pytest.mark.asyncio
    async def test_unsupported_kind(self, policy, checker):
        query = UniquenessQuery(klass="User", attribute="email", value="x", kind="presence")
        with pytest.raises(ValueError):
            await run_uniqueness_query(query, policy, checker)


# =============================================================================
# HTTP endpoint
# =============================================================================


class TestEndpoint:
    def test_taken(self, http):
        response = http.get(
            "/judge/validate",
            params={"klass": "User", "attribute": "email", "value": "taken@example.com", "kind": "uniqueness"},
        )
        assert response.status_code == 200
        assert response.json() == ["has already been taken"]

    def test_unique(self, http):
        response = http.get(
            "/judge/validate",
            params={"klass": "User", "attribute": "email", "value": "fresh@example.com"},
        )
        assert response.status_code == 200
        assert response.json() == []

    def test_not_exposed_is_404(self, http):
        response = http.get(
            "/judge/validate",
            params={"klass": "User", "attribute": "password", "value": "x"},
        )
        assert response.status_code == 404

    def test_unsupported_kind_is_400(self, http):
        response = http.get(
            "/judge/validate",
            params={"klass": "User", "attribute": "email", "value": "x", "kind": "length"},
        )
        assert response.status_code == 400

    def test_missing_params_is_422(self, http):
        response = http.get("/judge/validate", params={"attribute": "email"})
        assert response.status_code == 422

    def test_custom_mount_path(self, checker, policy):
        app = create_app(checker, policy=policy, config=JudgeConfig(mount_path="/forms/judge/"))
        with TestClient(app) as http:
            response = http.get(
                "/forms/judge/validate",
                params={"klass": "User", "attribute": "email", "value": "x"},
            )
        assert response.status_code == 200

    def test_policy_loaded_from_exposure_file(self, checker, tmp_path):
        exposure_file = tmp_path / "exposure.yaml"
        exposure_file.write_text("expose:\n  User: [email]\n")
        app = create_app(checker, config=JudgeConfig(exposure_file=exposure_file))
        with TestClient(app) as http:
            allowed = http.get("/judge/validate", params={"klass": "User", "attribute": "email", "value": "x"})
            refused = http.get("/judge/validate", params={"klass": "User", "attribute": "username", "value": "x"})
        assert allowed.status_code == 200
        assert refused.status_code == 404

    def test_no_policy_refuses_everything(self, checker):
        app = create_app(checker, config=JudgeConfig())
        with TestClient(app) as http:
            response = http.get("/judge/validate", params={"klass": "User", "attribute": "email", "value": "x"})
        assert response.status_code == 404


# =============================================================================
# UniquenessClient
# =============================================================================


def mock_client(handler) -> UniquenessClient:
    return UniquenessClient(
        httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver"),
        mount_path="/judge",
    )


class TestUniquenessClient:
    @pytest.mark.asyncio
    async def test_sends_raw_record_type(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[])

        async with mock_client(handler) as client:
            assert await client.fetch_messages("EmailAttributes", "address", "a@example.com") == []

        assert seen["path"] == "/judge/validate"
        assert seen["params"] == {
            "klass": "EmailAttributes",
            "attribute": "address",
            "value": "a@example.com",
            "kind": "uniqueness",
        }

    @pytest.mark.asyncio
    async def test_sends_original_value(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, json=[])

        async with mock_client(handler) as client:
            await client.fetch_messages("User", "email", "a", original_value="b")
        assert seen["original_value"] == "b"

    @pytest.mark.asyncio
    async def test_messages_returned(self):
        async with mock_client(lambda r: httpx.Response(200, json=["has already been taken"])) as client:
            assert await client.fetch_messages("User", "email", "a") == ["has already been taken"]

    @pytest.mark.asyncio
    async def test_non_200_is_transport_error(self):
        async with mock_client(lambda r: httpx.Response(404, text="not exposed")) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.fetch_messages("User", "password", "x")
        assert exc_info.value.status == 404
        assert exc_info.value.detail == "not exposed"

    @pytest.mark.asyncio
    async def test_non_array_body_is_transport_error(self):
        async with mock_client(lambda r: httpx.Response(200, json={"valid": True})) as client:
            with pytest.raises(TransportError):
                await client.fetch_messages("User", "email", "x")

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self):
        async with mock_client(lambda r: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(TransportError):
                await client.fetch_messages("User", "email", "x")

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.fetch_messages("User", "email", "x")
        assert exc_info.value.status is None

    def test_from_config(self):
        client = UniquenessClient.from_config(JudgeConfig(mount_path="forms/", base_url="http://example.com"))
        assert client.url == "/forms/validate"
        assert client.http.base_url.host == "example.com"


# =============================================================================
# End to end: orchestrator -> client -> endpoint
# =============================================================================


def signup_form(email: str, nested_email: str) -> Form:
    rules = json.dumps([
        {"kind": "presence", "messages": {"blank": "can't be blank"}},
        {"kind": "uniqueness", "messages": {}},
    ])
    return Form([
        FieldElement(name="user[email]", value=email, validate=rules),
        FieldElement(name="user[email_attributes][address]", value=nested_email, validate=rules),
    ])


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_taken_values_are_invalid(self, app, config):
        async with make_client(app, config) as client:
            registry = ValidatorRegistry()
            register_builtin_validators(registry, client=client)
            form = signup_form("taken@example.com", "used@example.com")

            result = await ValidationOrchestrator(registry).validate_form(form)

        assert [r.status for r in result.results] == [FieldStatus.INVALID, FieldStatus.INVALID]
        assert result.results[0].messages == ["has already been taken"]

    @pytest.mark.asyncio
    async def test_fresh_values_are_valid(self, app, config):
        async with make_client(app, config) as client:
            registry = ValidatorRegistry()
            register_builtin_validators(registry, client=client)
            result = await ValidationOrchestrator(registry).validate_form(
                signup_form("fresh@example.com", "fresh@example.com")
            )
        assert result.valid

    @pytest.mark.asyncio
    async def test_unexposed_field_is_errored_not_valid(self, app, config):
        async with make_client(app, config) as client:
            registry = ValidatorRegistry()
            register_builtin_validators(registry, client=client)
            field = FieldElement(
                name="user[password]",
                value="x",
                validate=json.dumps([{"kind": "uniqueness"}]),
            )
            result = await ValidationOrchestrator(registry).validate_field(field)

        assert result.status is FieldStatus.ERRORED
        assert isinstance(result.errors[0], TransportError)
        assert result.errors[0].status == 404
