"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from natura_map.cache import ResultCache
from natura_map.datasources.inaturalist.scheduler import RequestScheduler
from natura_map.store import DataStore
from tests.helpers import FakeClock, FakeSession, Handler


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_scheduler(
    clock: FakeClock,
) -> Iterator[Callable[[Handler], tuple[RequestScheduler, FakeSession]]]:
    """Factory for schedulers wired to a fake session; closed after the test."""
    created: list[RequestScheduler] = []

    def _make(handler: Handler) -> tuple[RequestScheduler, FakeSession]:
        session = FakeSession(clock, handler)
        scheduler = RequestScheduler(
            session,  # type: ignore[arg-type]
            api_base="https://api.test/v1",
            clock=clock,
            sleep=clock.sleep,
        )
        created.append(scheduler)
        return scheduler, session

    yield _make
    for scheduler in created:
        scheduler.close(timeout=5)


@pytest.fixture
def result_cache(tmp_path: Path) -> ResultCache:
    return ResultCache(DataStore(tmp_path / "cache"))
