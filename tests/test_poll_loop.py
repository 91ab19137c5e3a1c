import asyncio

import pytest
from fakes import FakeClock, FakeDirectory, FakeResolver, FakeSampler, RecordingSink, make_minigame

from boss_health.loop import PollLoop
from boss_health.tracker import BossTracker


@pytest.fixture()
def resolver() -> FakeResolver:
    return FakeResolver({"ctrl-zeus": "BP_FigureV2_C_1", "ctrl-hera": "BP_FigureV2_C_2"})


@pytest.fixture()
def sampler() -> FakeSampler:
    return FakeSampler({"BP_FigureV2_C_1": (100.0, 100.0), "BP_FigureV2_C_2": (40.0, 100.0)})


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory([make_minigame("a")])


@pytest.fixture()
def tracker(config, resolver, sampler, sink) -> BossTracker:
    return BossTracker(config, resolver, sampler, sink, clock=FakeClock())


@pytest.fixture()
def poll(tracker, directory) -> PollLoop:
    return PollLoop(tracker, directory, interval_ms=10)


def test_poll_once_tracks_and_announces(poll, tracker, sink):
    assert asyncio.run(poll.poll_once()) == 1
    assert [r.ruleset_id for r in tracker.tracked] == ["a"]
    assert len(sink.shown) == 1
    assert poll.polls == 1


def test_directory_failure_prunes_everything(poll, tracker, directory):
    asyncio.run(poll.poll_once())
    directory.error = RuntimeError("server went away")
    assert asyncio.run(poll.poll_once()) == 0
    assert tracker.tracked == []

    directory.error = None
    asyncio.run(poll.poll_once())
    assert [r.ruleset_id for r in tracker.tracked] == ["a"]


def test_directory_returning_none_means_no_minigames(poll, tracker, directory):
    asyncio.run(poll.poll_once())
    directory.minigames = None
    asyncio.run(poll.poll_once())
    assert tracker.tracked == []


def test_dict_entries_are_parsed_and_malformed_ones_skipped(poll, tracker, directory, sink):
    directory.minigames = [
        {
            "ruleset": "dict-game",
            "name": "Boss Fight",
            "teams": [{"name": "BOSS", "members": [{"name": "Zeus", "controller": "ctrl-zeus"}]}],
            "members": [{"name": "Zeus"}, {"name": "Alice"}],
        },
        {"name": "no ruleset"},
        "garbage",
    ]
    assert asyncio.run(poll.poll_once()) == 1
    assert [r.ruleset_id for r in tracker.tracked] == ["dict-game"]
    assert sink.shown[0][3] == ["Zeus", "Alice"]


def test_failing_record_does_not_block_the_next(poll, tracker, directory, sampler, sink):
    directory.minigames = [
        make_minigame("a", boss_members=[("Zeus", "ctrl-zeus")]),
        make_minigame("b", boss_members=[("Hera", "ctrl-hera")]),
    ]
    del sampler.health["BP_FigureV2_C_1"]
    assert asyncio.run(poll.poll_once()) == 1
    assert [boss for _, boss, _, _ in sink.shown] == ["Hera"]
    assert poll.polls == 1


def test_unexpected_error_is_contained(poll, tracker, directory, sink, resolver):
    async def broken(controller_id):
        raise RuntimeError("boom")

    resolver.resolve_pawn = broken
    assert asyncio.run(poll.poll_once()) == 0
    assert poll.polls == 1


def test_start_polls_until_stopped(poll, tracker, directory):
    async def run():
        poll.start()
        poll.start()
        assert poll.running
        await asyncio.sleep(0.05)
        assert tracker.tracked
        await poll.stop()

    asyncio.run(run())
    assert poll.running is False
    assert poll.polls >= 2
    assert tracker.tracked == []


def test_polls_never_overlap(tracker):
    class SlowDirectory(FakeDirectory):
        active = 0
        max_active = 0

        async def list_minigames(self):
            SlowDirectory.active += 1
            SlowDirectory.max_active = max(SlowDirectory.max_active, SlowDirectory.active)
            await asyncio.sleep(0.02)
            SlowDirectory.active -= 1
            return []

    poll = PollLoop(tracker, SlowDirectory(), interval_ms=1)

    async def run():
        poll.start()
        await asyncio.sleep(0.1)
        await poll.stop()

    asyncio.run(run())
    assert SlowDirectory.max_active == 1
    assert poll.polls >= 2


def test_stop_without_start_is_harmless(poll, tracker):
    tracker.reconcile([make_minigame("a")])
    asyncio.run(poll.stop())
    assert tracker.tracked == []
