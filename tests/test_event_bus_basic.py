from core.event_bus import AppEvent, EventBus, preference_event


def test_subscribe_and_publish_order():
    bus = EventBus()
    order = []

    def h1(e):
        order.append(("h1", e.name))

    def h2(e):
        order.append(("h2", e.name))

    bus.subscribe(AppEvent.VIEW_CHANGED, h1)
    bus.subscribe(AppEvent.VIEW_CHANGED, h2)
    bus.publish(AppEvent.VIEW_CHANGED, [])
    assert order == [
        ("h1", AppEvent.VIEW_CHANGED.value),
        ("h2", AppEvent.VIEW_CHANGED.value),
    ]


def test_once_subscription():
    bus = EventBus()
    calls = []
    bus.subscribe(AppEvent.STARTUP_COMPLETE, lambda e: calls.append(e.name), once=True)
    bus.publish(AppEvent.STARTUP_COMPLETE)
    bus.publish(AppEvent.STARTUP_COMPLETE)
    assert calls == [AppEvent.STARTUP_COMPLETE.value]


def test_unsubscribe():
    bus = EventBus()
    calls = []
    sub = bus.subscribe(preference_event("books"), lambda e: calls.append(e.payload))
    bus.publish("preference:books", 1)
    bus.unsubscribe(sub)
    bus.publish("preference:books", 2)
    assert calls == [1]
    assert bus.subscriber_count("preference:books") == 0


def test_error_isolation():
    bus = EventBus()
    calls = []

    def bad(e):
        raise RuntimeError("boom")

    def good(e):
        calls.append("ok")

    bus.subscribe(AppEvent.VIEW_CHANGED, bad)
    bus.subscribe(AppEvent.VIEW_CHANGED, good)
    bus.publish(AppEvent.VIEW_CHANGED)
    assert calls == ["ok"]
    assert len(bus.errors) == 1


def test_handler_may_publish_recursively():
    bus = EventBus()
    seen = []
    bus.subscribe("a", lambda e: bus.publish("b", e.payload + 1))
    bus.subscribe("b", lambda e: seen.append(e.payload))
    bus.publish("a", 1)
    assert seen == [2]


def test_tracing_ring_buffer():
    bus = EventBus()
    bus.enable_tracing(True, capacity=2)
    for i in range(3):
        bus.publish(AppEvent.VIEW_CHANGED, "x" * (50 + i))
    traces = bus.recent_traces()
    assert len(traces) == 2
    assert all(t.summary.endswith("...") for t in traces)
    bus.clear_traces()
    assert bus.recent_traces() == []


def test_error_history_is_bounded():
    bus = EventBus()

    def bad(e):
        raise ValueError(e.payload)

    bus.subscribe(AppEvent.VIEW_CHANGED, bad)
    for i in range(EventBus.DEFAULT_ERROR_CAPACITY + 20):
        bus.publish(AppEvent.VIEW_CHANGED, i)
    errors = bus.errors
    assert len(errors) == EventBus.DEFAULT_ERROR_CAPACITY
    assert errors[0][0].payload == 20
