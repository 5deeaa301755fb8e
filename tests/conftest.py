"""
Shared pytest fixtures for ferret tests.

The tenant fixture models a small federated directory:

    Contoso Team Site (site-contoso)
        Documents               drive-contoso-docs
        Preservation Hold Library   drive-contoso-hold   (cache, pruned)
    Finance (site-finance)
        Shared Documents        drive-finance
    Jane Doe (personal site, skipped)

    own drives: drive-me (personal OneDrive)
"""

from collections.abc import Iterator

import pytest

from cache import ResolutionCache, SingleFlight, reset_shared_state
from tests.helpers import FakeBackend, StaticExtractor, container, personal, site
from tools.fetch import Extractors
from tools.service import LocatorService


@pytest.fixture(autouse=True)
def _fresh_shared_state() -> Iterator[None]:
    """Process-wide cache and single-flight group start empty for every test."""
    reset_shared_state()
    yield
    reset_shared_state()


@pytest.fixture
def tenant() -> FakeBackend:
    return FakeBackend(
        sites=[
            site("site-contoso", "Contoso Team Site"),
            site("site-finance", "Finance"),
            site(
                "site-jane",
                "Jane Doe",
                web_url="https://contoso-my.sharepoint.com/personal/jane_contoso_com",
            ),
        ],
        containers={
            "site-contoso": [
                container("drive-contoso-docs", "Documents"),
                container("drive-contoso-hold", "Preservation Hold Library"),
            ],
            "site-finance": [
                container("drive-finance", "Shared Documents"),
            ],
            "site-jane": [
                personal("drive-jane"),
            ],
        },
        own=[personal("drive-me")],
    )


@pytest.fixture
def resolution_cache() -> ResolutionCache:
    return ResolutionCache()


@pytest.fixture
def extractors() -> Extractors:
    return Extractors(
        office=StaticExtractor("# Quarterly report\n\nRevenue grew."),
        pdf=StaticExtractor("PDF text"),
    )


@pytest.fixture
def service(tenant: FakeBackend, resolution_cache: ResolutionCache, extractors: Extractors) -> LocatorService:
    return LocatorService(
        tenant,
        cache=resolution_cache,
        single_flight=SingleFlight(),
        extractors=extractors,
        probe_timeout=1.0,
        probe_batch_size=1,
        cache_content=True,
        max_file_size=10 * 1024 * 1024,
        abort_on_auth_expired=False,
    )
