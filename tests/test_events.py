from boss_health.events import EventBus


def test_handlers_receive_payload_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe("boss.bound", lambda name, **_: seen.append(("first", name)))
    bus.subscribe("boss.bound", lambda name, **_: seen.append(("second", name)))
    bus.emit("boss.bound", ruleset_id="r", name="Zeus", pawn_id="p")
    assert seen == [("first", "Zeus"), ("second", "Zeus")]


def test_duplicate_subscription_is_ignored():
    bus = EventBus()
    calls = []

    def handler(**kw):
        calls.append(kw)

    bus.subscribe("boss.lost", handler)
    bus.subscribe("boss.lost", handler)
    bus.emit("boss.lost", ruleset_id="r", name=None)
    assert len(calls) == 1


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    def broken(**_):
        raise RuntimeError("boom")

    bus.subscribe("minigame.dropped", broken)
    bus.subscribe("minigame.dropped", lambda ruleset_id: seen.append(ruleset_id))
    bus.emit("minigame.dropped", ruleset_id="r")
    assert seen == ["r"]


def test_unsubscribed_handler_is_no_longer_called():
    bus = EventBus()
    calls = []
    other = []

    def handler(ruleset_id):
        calls.append(ruleset_id)

    bus.subscribe("minigame.tracked", handler)
    bus.subscribe("minigame.tracked", lambda ruleset_id: other.append(ruleset_id))
    bus.emit("minigame.tracked", ruleset_id="before")

    bus.unsubscribe("minigame.tracked", handler)
    bus.emit("minigame.tracked", ruleset_id="after")

    assert calls == ["before"]
    assert other == ["before", "after"]


def test_unsubscribe_unknown_handler_is_harmless():
    bus = EventBus()
    bus.unsubscribe("never.subscribed", print)
    bus.emit("never.subscribed", x=1)
