"""
First-success race over redundant data sources.

This is a pure asyncio concurrency primitive with no HA or network dependencies.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from .const import GENERIC_PASS_FAILURE
from .errors import AllSourcesFailed, SpaceDataError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Losing candidates keep running after a winner is chosen; hold a strong
# reference until they finish so they are not garbage collected mid-flight.
_stragglers: set[asyncio.Task] = set()


class CancelToken:
    """Cooperative cancellation flag handed to each race candidate."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


Candidate = tuple[str, Callable[[CancelToken], Awaitable[Any]]]


def describe_failures(
    failures: Sequence[tuple[str, BaseException]], generic_message: str
) -> str:
    """Message of the first failure that carries one, else generic_message."""
    for _name, exc in failures:
        message = str(exc).strip()
        if message:
            return message
    return generic_message


def _discard_straggler(task: asyncio.Task) -> None:
    _stragglers.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _LOGGER.debug("Discarded race candidate failed after winner was chosen: %s", exc)


async def first_success(
    candidates: Sequence[Candidate],
    *,
    generic_message: str = GENERIC_PASS_FAILURE,
) -> Any:
    """
    Run every candidate concurrently and return the first successful result.

    The winner is decided by completion order, not declaration order. Once a
    winner exists, the other candidates' tokens are cancelled but their tasks
    are left to finish in the background; their results are discarded.

    Raises:
        AllSourcesFailed: every candidate raised. The message is the first
            descriptive failure message (completion order) or generic_message.
    """
    if not candidates:
        raise AllSourcesFailed(generic_message)

    entries: dict[asyncio.Task, tuple[int, str, CancelToken]] = {}
    for index, (name, factory) in enumerate(candidates):
        token = CancelToken()
        task = asyncio.ensure_future(factory(token))
        entries[task] = (index, name, token)

    pending: set[asyncio.Task] = set(entries)
    failures: list[tuple[str, BaseException]] = []
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            # Tasks finishing in the same loop iteration are indistinguishable in time
            for task in sorted(done, key=lambda t: entries[t][0]):
                _index, name, _token = entries[task]
                if task.cancelled():
                    failures.append((name, asyncio.CancelledError()))
                    continue
                exc = task.exception()
                if exc is None:
                    _LOGGER.debug("Race won by %s", name)
                    _abandon(entries, pending | (done - {task}))
                    return task.result()
                if not isinstance(exc, SpaceDataError):
                    _LOGGER.warning("Unexpected failure in source %s: %r", name, exc)
                failures.append((name, exc))
    except asyncio.CancelledError:
        for task, (_index, _name, token) in entries.items():
            token.cancel()
            task.cancel()
        raise

    message = describe_failures(failures, generic_message)
    _LOGGER.warning("All %s sources failed: %s", len(candidates), message)
    raise AllSourcesFailed(message, failures)


def _abandon(
    entries: dict[asyncio.Task, tuple[int, str, CancelToken]], tasks: set[asyncio.Task]
) -> None:
    for task in tasks:
        entries[task][2].cancel()
        if task.done():
            # Retrieve the outcome so asyncio does not log "exception never retrieved"
            _discard_straggler(task)
            continue
        _stragglers.add(task)
        task.add_done_callback(_discard_straggler)
