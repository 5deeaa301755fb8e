"""
Integration tests against a real Graph tenant.

Run with: FERRET_ACCESS_TOKEN=... uv run pytest tests/integration -v -m integration

Optional IDs come from fixtures/integration_ids.json:
    {"site_name": "Contoso Team", "resource_id": "01ABC..."}
"""

import json
import os
from pathlib import Path

import pytest

from adapters.graph import GraphBackend
from cache import ResolutionCache, SingleFlight
from tools.service import LocatorService

IDS_FILE = Path(__file__).parent.parent.parent / "fixtures" / "integration_ids.json"


@pytest.fixture
def token() -> str:
    value = os.environ.get("FERRET_ACCESS_TOKEN", "").strip()
    if not value:
        pytest.skip("FERRET_ACCESS_TOKEN not set")
    return value


@pytest.fixture
def integration_ids() -> dict[str, str]:
    """Load integration test IDs from config file."""
    if not IDS_FILE.exists():
        pytest.skip(f"Integration IDs not configured. Create {IDS_FILE}")
    with open(IDS_FILE) as f:
        return json.load(f)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_list_own_containers(token: str) -> None:
    async with GraphBackend.from_token(token) as backend:
        containers = await backend.list_own_containers()
    assert all(c.id for c in containers)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_resolve_site(token: str, integration_ids: dict[str, str]) -> None:
    name = integration_ids.get("site_name")
    if not name:
        pytest.skip("site_name not in integration_ids.json")

    async with GraphBackend.from_token(token) as backend:
        service = LocatorService(backend, cache=ResolutionCache(), single_flight=SingleFlight())
        container = await service.resolve_container(name)

    assert container.id
    assert container.site_name


@pytest.mark.integration
@pytest.mark.asyncio
async def test_fetch_resource(token: str, integration_ids: dict[str, str]) -> None:
    resource_id = integration_ids.get("resource_id")
    if not resource_id:
        pytest.skip("resource_id not in integration_ids.json")

    async with GraphBackend.from_token(token) as backend:
        service = LocatorService(backend, cache=ResolutionCache(), single_flight=SingleFlight())
        result = await service.fetch_content(resource_id)

    assert result.item.id == resource_id
    assert result.to_dict()["size"] > 0
