"""
Tests for the do_* entry points shared by the MCP server and the CLI.

open_service is patched to hand back a LocatorService over the fake tenant,
so these exercise response shapes and error mapping, not Graph.
"""

from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest

from cache import get_shared_cache
from models import ErrorKind, FerretError, FetchResult, OperationError, OperationResult
from adapters.services import credential_fingerprint
from tests.helpers import FakeBackend, forbidden, item
from tools.operations import do_cache, do_fetch, do_locate, do_resolve, open_service
from tools.service import LocatorService


@pytest.fixture
def patched_service(service: LocatorService):
    @asynccontextmanager
    async def fake_open_service(access_token=None):
        yield service

    with patch("tools.operations.open_service", fake_open_service):
        yield service


class TestDoResolve:

    @pytest.mark.asyncio
    async def test_success(self, patched_service):
        result = await do_resolve("contoso team")

        assert isinstance(result, OperationResult)
        payload = result.to_dict()
        assert payload["operation"] == "resolve"
        assert payload["container"]["id"] == "drive-contoso-docs"
        assert payload["container"]["site_name"] == "Contoso Team Site"

    @pytest.mark.asyncio
    async def test_not_found(self, patched_service):
        result = await do_resolve("Fabrikam")

        assert isinstance(result, OperationError)
        payload = result.to_dict()
        assert payload["error"] is True
        assert payload["kind"] == "resolution_not_found"
        assert payload["name"] == "Fabrikam"

    @pytest.mark.asyncio
    async def test_empty_name(self, patched_service):
        result = await do_resolve("  ")
        assert result.to_dict()["kind"] == "invalid_input"


class TestDoLocate:

    @pytest.mark.asyncio
    async def test_success(self, patched_service, tenant: FakeBackend):
        tenant.put_item("drive-finance", item("01ABC"))

        payload = (await do_locate("01ABC")).to_dict()

        assert payload["operation"] == "locate"
        assert payload["resource_id"] == "01ABC"
        assert payload["container"]["id"] == "drive-finance"
        assert payload["item"]["name"] == "report.docx"
        assert payload["probes"] == 2
        assert payload["cache_hit"] is False

    @pytest.mark.asyncio
    async def test_not_accessible_carries_attempts(self, patched_service):
        payload = (await do_locate("01MISSING")).to_dict()

        assert payload["kind"] == "resource_not_accessible"
        assert [a["outcome"] for a in payload["attempts"]] == ["not_found"] * 3

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported(self, patched_service, tenant: FakeBackend):
        tenant.list_sites_error = RuntimeError("boom")

        payload = (await do_locate("01ABC")).to_dict()

        assert payload["kind"] == "unknown"
        assert "boom" in payload["message"]


class TestDoFetch:

    @pytest.mark.asyncio
    async def test_text(self, patched_service, tenant: FakeBackend):
        tenant.put_item("drive-contoso-docs", item("01ABC"), b"PK\x03\x04docx")

        result = await do_fetch("01ABC", extract_text=True)

        assert isinstance(result, FetchResult)
        payload = result.to_dict()
        assert payload["format"] == "text"
        assert payload["stage"] == "structured"

    @pytest.mark.asyncio
    async def test_bad_mode(self, patched_service):
        result = await do_fetch("01ABC", mode="markdown")  # type: ignore[arg-type]
        assert isinstance(result, OperationError)
        assert result.kind == "invalid_input"


class TestPerTokenCache:

    @pytest.mark.asyncio
    async def test_second_token_gets_its_own_answer(self, tenant: FakeBackend):
        tenant.put_item("drive-finance", item("01ABC", name="notes.txt", mime_type="text/plain"), b"secret")
        denied = FakeBackend(
            sites=tenant.sites,
            containers=tenant.containers,
            own=tenant.own,
            probe_errors={d: forbidden(d) for d in ("drive-contoso-docs", "drive-finance", "drive-me")},
        )
        backends = {"alice-token": tenant, "mallory-token": denied}

        with patch("tools.operations.GraphBackend.from_token", side_effect=lambda token: backends[token]):
            first = await do_fetch("01ABC", access_token="alice-token")
            second = await do_fetch("01ABC", access_token="mallory-token")
            again = await do_fetch("01ABC", access_token="alice-token")

        assert isinstance(first, FetchResult)
        assert first.content.data == b"secret"
        assert isinstance(second, OperationError)
        assert second.kind == "resource_not_accessible"
        assert [a["outcome"] for a in second.details["attempts"]] == ["forbidden"] * 3
        assert again.cache_hit is True
        assert tenant.closed is True
        assert denied.closed is True

    def test_fingerprint(self):
        alice = credential_fingerprint("alice-token")
        assert alice == credential_fingerprint("alice-token")
        assert alice != credential_fingerprint("mallory-token")
        assert len(alice) == 16
        assert "alice" not in alice


class TestOpenService:

    @pytest.mark.asyncio
    async def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("FERRET_ACCESS_TOKEN", raising=False)

        with pytest.raises(FerretError) as exc_info:
            async with open_service():
                pass
        assert exc_info.value.kind == ErrorKind.AUTH_EXPIRED

    @pytest.mark.asyncio
    async def test_missing_token_reported(self, monkeypatch):
        monkeypatch.delenv("FERRET_ACCESS_TOKEN", raising=False)

        payload = (await do_resolve("Finance")).to_dict()

        assert payload["kind"] == "auth_expired"


class TestDoCache:

    def test_stats(self):
        get_shared_cache().put("site:contoso", "x")
        get_shared_cache().get("site:contoso")

        payload = do_cache("stats").to_dict()

        assert payload == {"operation": "cache", "action": "stats", "hits": 1, "misses": 0, "size": 1}

    def test_invalidate(self):
        get_shared_cache().put("site:contoso", "x")
        get_shared_cache().put("site:contoso team", "y")
        get_shared_cache().put("site:finance", "z")

        payload = do_cache("invalidate", "site:contoso*").to_dict()

        assert payload["removed"] == 2
        assert get_shared_cache().keys() == ["site:finance"]

    def test_invalidate_requires_pattern(self):
        result = do_cache("invalidate")
        assert isinstance(result, OperationError)
        assert result.kind == "invalid_input"

    def test_clear(self):
        get_shared_cache().put("item:01ABC", "x")
        assert do_cache("clear").to_dict()["removed"] == 1

    def test_unknown_action(self):
        result = do_cache("flush")
        assert isinstance(result, OperationError)
        assert "Valid: clear, invalidate, stats" in result.message
