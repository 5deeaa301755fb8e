"""
Resource location: find the one container that holds an opaque item ID.

The backend has no global item lookup: an ID only resolves inside its own
container. So we probe candidates in priority order and stop at the first
container that reports the item.

first_success() is the generic "try each until one works" combinator;
locate() is its application to item metadata probes.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from adapters.interfaces import DirectoryBackend
from graph_config import ABORT_ON_AUTH_EXPIRED, PROBE_BATCH_SIZE, PROBE_TIMEOUT_SECONDS
from logging_config import log_probe, logger
from models import (
    ContainerRef,
    ErrorKind,
    FerretError,
    ItemMetadata,
    Location,
    ProbeAttempt,
    ProbeOutcome,
    ResourceNotAccessible,
)

C = TypeVar("C")
R = TypeVar("R")

# Probes still running after a winner was picked. Held so they can finish
# undisturbed; their results are discarded.
_background: set[asyncio.Future[Any]] = set()


@dataclass
class SearchOutcome(Generic[C, R]):
    """Result of first_success: the winner (if any) plus every failure before it."""
    winner: C | None = None
    result: R | None = None
    failures: list[tuple[C, BaseException]] = field(default_factory=list)


def _release(tasks: Sequence[asyncio.Future[Any]]) -> None:
    """Let lower-priority probes run to completion in the background."""
    for task in tasks:
        if task.done():
            if not task.cancelled():
                task.exception()
            continue
        _background.add(task)
        task.add_done_callback(_discard_background)


def _discard_background(task: asyncio.Future[Any]) -> None:
    _background.discard(task)
    if not task.cancelled():
        task.exception()


async def first_success(
    candidates: Sequence[C],
    attempt: Callable[[C], Awaitable[R]],
    *,
    timeout: float | None = PROBE_TIMEOUT_SECONDS,
    batch_size: int = 1,
    should_abort: Callable[[BaseException], bool] | None = None,
) -> SearchOutcome[C, R]:
    """
    Try candidates in order until one attempt succeeds.

    Sequential when batch_size <= 1: a candidate is only tried after every
    higher-priority one has failed. With batch_size > 1, candidates are tried
    concurrently in consecutive batches, but results are consumed in
    priority order, so the highest-priority success always wins.

    Each attempt gets its own timeout. A timeout is a failure like any other.

    Args:
        candidates: Candidates in priority order
        attempt: Coroutine function trying one candidate
        timeout: Per-attempt timeout in seconds (None = no limit)
        batch_size: How many attempts may run at once
        should_abort: Return True for failures that must end the search;
            the failure is re-raised

    Returns:
        SearchOutcome with winner=None when every candidate failed
    """
    outcome: SearchOutcome[C, R] = SearchOutcome()
    size = max(1, batch_size)

    for start in range(0, len(candidates), size):
        batch = candidates[start:start + size]
        tasks = [asyncio.ensure_future(asyncio.wait_for(attempt(c), timeout)) for c in batch]

        for index, (candidate, task) in enumerate(zip(batch, tasks)):
            try:
                # shield: an abandoned caller must not cancel in-flight probes
                result = await asyncio.shield(task)
            except Exception as e:
                if should_abort is not None and should_abort(e):
                    _release(tasks[index + 1:])
                    raise
                outcome.failures.append((candidate, e))
                continue
            except BaseException:
                # Caller cancelled: the probes keep running unobserved
                _release(tasks[index:])
                raise

            _release(tasks[index + 1:])
            outcome.winner = candidate
            outcome.result = result
            return outcome

    return outcome


def _probe_attempt(container: ContainerRef, error: BaseException, timeout: float | None) -> ProbeAttempt:
    outcome: ProbeOutcome
    if isinstance(error, TimeoutError):
        outcome, reason = "timeout", f"no answer within {timeout}s"
    elif isinstance(error, FerretError):
        if error.kind is ErrorKind.NOT_FOUND:
            outcome = "not_found"
        elif error.kind in (ErrorKind.PERMISSION_DENIED, ErrorKind.AUTH_EXPIRED):
            outcome = "forbidden"
        elif error.kind is ErrorKind.TIMEOUT:
            outcome = "timeout"
        else:
            outcome = "error"
        reason = f"{error.kind.value}: {error.message}"
    else:
        outcome, reason = "error", f"{type(error).__name__}: {error}"
    return ProbeAttempt(container.id, container.name, outcome, reason)


async def locate(
    resource_id: str,
    candidates: Sequence[ContainerRef],
    backend: DirectoryBackend,
    *,
    timeout: float | None = PROBE_TIMEOUT_SECONDS,
    batch_size: int = PROBE_BATCH_SIZE,
    abort_on_auth_expired: bool = ABORT_ON_AUTH_EXPIRED,
) -> Location:
    """
    Find the container holding resource_id.

    Every miss (not found, forbidden, timeout, other error) is recorded and
    logged, and the search moves on.

    Args:
        resource_id: Opaque item ID
        candidates: Containers in priority order (see tools.candidates)
        backend: Directory backend used for probes
        timeout: Per-probe timeout in seconds
        batch_size: Concurrent probes per batch (1 = sequential)
        abort_on_auth_expired: Stop at the first expired-credential failure

    Returns:
        Location of the first container that reported the item

    Raises:
        ResourceNotAccessible: No candidate reported the item
        FerretError(AUTH_EXPIRED): Only when abort_on_auth_expired is set
    """

    async def probe(container: ContainerRef) -> ItemMetadata:
        return await backend.get_item_metadata(container.id, resource_id)

    def abort(error: BaseException) -> bool:
        return (
            abort_on_auth_expired
            and isinstance(error, FerretError)
            and error.kind is ErrorKind.AUTH_EXPIRED
        )

    logger.debug(f"Locating {resource_id} across {len(candidates)} candidates")
    outcome = await first_success(
        candidates, probe, timeout=timeout, batch_size=batch_size, should_abort=abort,
    )

    attempts = [_probe_attempt(c, e, timeout) for c, e in outcome.failures]
    for a in attempts:
        log_probe(a.container_id, a.container_name, a.outcome, a.reason)

    if outcome.winner is None or outcome.result is None:
        logger.warning(f"Resource {resource_id} not found in {len(candidates)} candidates")
        raise ResourceNotAccessible(resource_id, attempts)

    winner = outcome.winner
    attempts.append(ProbeAttempt(winner.id, winner.name, "found"))
    log_probe(winner.id, winner.name, "found")
    return Location(container=winner, item=outcome.result, attempts=attempts)
