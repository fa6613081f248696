# tests/test_scheduler_sqlalchemy.py
from pathlib import Path

import pytest

from flatwatch.adapters.repos.profiles import ProfileRepository
from flatwatch.adapters.sources.stub_json import StubJsonSource
from flatwatch.domain.types import ActionMode
from flatwatch.jobs.scheduler import Scheduler
from flatwatch.services.action_mode import ActionModeController

from fakes import FakeComposer, FakeNotifier, FakeSubmitter, no_wait_limiter

FIXTURES = Path(__file__).resolve().parents[1] / "data" / "listings"


@pytest.mark.asyncio
async def test_full_cycle_with_fixture_source_and_db(store, async_session_maker):
    async with async_session_maker() as session:
        await ProfileRepository(session).create(
            {"name": "berlin", "city": "Berlin", "max_price": 1500, "min_rooms": 2, "districts": ["Neukölln"]}
        )
        await session.commit()

    notifier = FakeNotifier()
    submitter = FakeSubmitter()
    s = Scheduler(
        store=store,
        source=StubJsonSource(fixtures_dir=FIXTURES),
        notifier=notifier,
        composer=FakeComposer(),
        submitter=submitter,
        rate_limiter=no_wait_limiter(),
        mode=ActionModeController(ActionMode.on),
    )

    res = await s.poll()

    # ber-1002 is too expensive and in the wrong district
    assert res.found == 3
    assert res.new == 2
    assert sorted(notifier.new) == ["ber-1001", "ber-1003"]
    assert sorted(c[0] for c in submitter.calls) == ["ber-1001", "ber-1003"]

    detailed = await store.get("ber-1001")
    assert detailed.build_year == 1910
    assert detailed.pets_allowed is True
    assert detailed.search_profile_id is not None
    assert detailed.contacted is True

    again = await s.poll()
    assert again.new == 0 and again.contacted == 0
    assert len(submitter.calls) == 2
