"""
Candidate enumeration: which containers to probe, and in what order.

Built as a fold: each step takes the current CandidatePlan and returns a new
one. Steps run in priority order:

1. explicit containers (resolved hint), then containers known from the cache
2. business sites' containers
3. the caller's own containers
4. personal containers, deferred from steps 2-3, appended last

Cache-like libraries are pruned. A failing step is logged, recorded in
plan.skipped, and enumeration continues with the next step.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace

import httpx

from adapters.interfaces import DirectoryBackend
from filters import classify_container, classify_site
from graph_config import MAX_ENUMERATED_SITES, SITE_SEARCH_FILTER
from logging_config import logger
from models import Classification, ContainerRef, FerretError


@dataclass
class CandidatePlan:
    """Immutable accumulator threaded through the enumeration steps."""
    primary: tuple[ContainerRef, ...] = ()
    deferred: tuple[ContainerRef, ...] = ()
    seen: frozenset[str] = frozenset()
    skipped: tuple[str, ...] = ()

    def add(self, container: ContainerRef) -> "CandidatePlan":
        if container.id in self.seen:
            return self
        return replace(self, primary=self.primary + (container,), seen=self.seen | {container.id})

    def defer(self, container: ContainerRef) -> "CandidatePlan":
        if container.id in self.seen:
            return self
        return replace(self, deferred=self.deferred + (container,), seen=self.seen | {container.id})

    def skip(self, step: str, reason: str) -> "CandidatePlan":
        return replace(self, skipped=self.skipped + (f"{step}: {reason}",))

    def ordered(self) -> list[ContainerRef]:
        return list(self.primary + self.deferred)


@dataclass
class EnumerationContext:
    backend: DirectoryBackend
    scope_hint: str | None = None
    explicit: Sequence[ContainerRef] = ()
    known: Sequence[ContainerRef] = ()
    max_sites: int = MAX_ENUMERATED_SITES
    site_filter: str = SITE_SEARCH_FILTER


Step = Callable[[CandidatePlan, EnumerationContext], Awaitable[CandidatePlan]]


def _place(plan: CandidatePlan, container: ContainerRef) -> CandidatePlan:
    """Add, defer, or prune one discovered container by classification."""
    classification = classify_container(container)
    if classification is Classification.BUSINESS:
        return plan.add(container)
    if classification is Classification.PERSONAL:
        return plan.defer(container)
    logger.debug(f"Pruned cache library {container.name} ({container.id})")
    return plan


async def explicit_and_known(plan: CandidatePlan, ctx: EnumerationContext) -> CandidatePlan:
    # Targeted containers are searched whatever their classification
    for container in [*ctx.explicit, *ctx.known]:
        plan = plan.add(container)
    return plan


async def business_sites(plan: CandidatePlan, ctx: EnumerationContext) -> CandidatePlan:
    sites = await ctx.backend.list_sites(ctx.scope_hint or ctx.site_filter)
    business = [s for s in sites if classify_site(s) is Classification.BUSINESS]
    if len(business) < len(sites):
        logger.debug(f"Skipped {len(sites) - len(business)} personal/cache sites")
    if len(business) > ctx.max_sites:
        logger.info(f"Enumerating first {ctx.max_sites} of {len(business)} sites")

    for site in business[: ctx.max_sites]:
        try:
            containers = await ctx.backend.list_containers(site.id)
        except (FerretError, httpx.HTTPError) as e:
            logger.warning(f"Skipping site {site.display_name} ({site.id}): {e}")
            plan = plan.skip(f"site {site.id}", str(e))
            continue
        for container in containers:
            if not container.site_name:
                container = replace(container, site_id=container.site_id or site.id, site_name=site.display_name)
            plan = _place(plan, container)
    return plan


async def own_containers(plan: CandidatePlan, ctx: EnumerationContext) -> CandidatePlan:
    for container in await ctx.backend.list_own_containers():
        plan = _place(plan, container)
    return plan


STEPS: tuple[Step, ...] = (explicit_and_known, business_sites, own_containers)


async def build_candidate_plan(ctx: EnumerationContext) -> CandidatePlan:
    """Fold the enumeration steps over an empty plan."""
    plan = CandidatePlan()
    for step in STEPS:
        try:
            plan = await step(plan, ctx)
        except (FerretError, httpx.HTTPError) as e:
            logger.warning(f"Enumeration step {step.__name__} failed, continuing: {e}")
            plan = plan.skip(step.__name__, str(e))
    return plan


async def enumerate_candidates(
    backend: DirectoryBackend,
    scope_hint: str | None = None,
    *,
    explicit: Sequence[ContainerRef] = (),
    known: Sequence[ContainerRef] = (),
    max_sites: int = MAX_ENUMERATED_SITES,
    site_filter: str = SITE_SEARCH_FILTER,
) -> list[ContainerRef]:
    """
    Enumerate candidate containers in priority order, deduplicated by ID.

    Args:
        backend: Directory backend to discover through
        scope_hint: Site search filter narrowing step 2 (default: everything)
        explicit: Containers the caller pointed at (resolved hint)
        known: Containers seen before (from the cache)
        max_sites: Cap on sites whose containers get listed

    Returns:
        Candidates: known/explicit, business, own business, personal
    """
    ctx = EnumerationContext(
        backend=backend,
        scope_hint=scope_hint,
        explicit=explicit,
        known=known,
        max_sites=max_sites,
        site_filter=site_filter,
    )
    plan = await build_candidate_plan(ctx)
    candidates = plan.ordered()
    logger.info(
        f"Enumerated {len(candidates)} candidates "
        f"({len(plan.primary)} primary, {len(plan.deferred)} personal, {len(plan.skipped)} skipped)"
    )
    return candidates
