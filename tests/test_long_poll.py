import asyncio

from airmon.state.long_poll import LongPollBroker, PollResponse
from airmon.state.sample import Sample
from airmon.state.sample_store import SampleStore


def _store(*times):
    store = SampleStore(capacity=10)
    for t in times:
        store.append(Sample(time=t, value=float(t), metric="T"))
    return store


def test_notify_delivers_query_computed_at_notification_time():
    async def scenario():
        store = _store(100)
        broker = LongPollBroker(store, timeout=5.0)
        received = []

        broker.add(received.append, 100)
        assert broker.timer_armed
        assert broker.pending_count() == 1

        store.append(Sample(time=150, value=2.0, metric="H"))
        broker.notify()
        return broker, received

    broker, received = asyncio.run(scenario())

    assert len(received) == 1
    assert received[0].kind == "data"
    assert [(s.time, s.metric) for s in received[0].samples] == [(150, "H")]
    assert broker.pending_count() == 0
    assert not broker.timer_armed


def test_each_request_uses_its_own_watermark():
    async def scenario():
        store = _store(100, 200)
        broker = LongPollBroker(store, timeout=5.0)
        first, second = [], []
        broker.add(first.append, 200)
        broker.add(second.append, 50)
        store.append(Sample(time=300, value=3.0, metric="T"))
        broker.notify()
        return first, second

    first, second = asyncio.run(scenario())

    assert [s.time for s in first[0].samples] == [300]
    assert [s.time for s in second[0].samples] == [100, 200, 300]


def test_timeout_asks_waiting_clients_to_retry():
    async def scenario():
        broker = LongPollBroker(_store(100), timeout=0.01)
        received = []
        broker.add(received.append, 100)
        await asyncio.sleep(0.05)
        return broker, received

    broker, received = asyncio.run(scenario())

    assert received == [PollResponse.retry()]
    assert received[0].to_dict() == {"status": "retry"}
    assert broker.pending_count() == 0
    assert not broker.timer_armed


def test_timer_is_shared_by_all_pending_requests():
    async def scenario():
        broker = LongPollBroker(_store(100), timeout=0.02)
        received = []
        broker.add(received.append, 100)
        timer = broker._timer
        await asyncio.sleep(0.005)
        broker.add(received.append, 100)
        assert broker._timer is timer
        await asyncio.sleep(0.05)
        return received

    received = asyncio.run(scenario())

    assert [r.kind for r in received] == ["retry", "retry"]


def test_notify_cancels_the_timer():
    async def scenario():
        store = _store(100)
        broker = LongPollBroker(store, timeout=0.02)
        received = []
        broker.add(received.append, 100)
        store.append(Sample(time=110, value=1.0, metric="T"))
        broker.notify()
        await asyncio.sleep(0.05)
        return received

    received = asyncio.run(scenario())

    assert [r.kind for r in received] == ["data"]


def test_notify_delivers_sentinel_verbatim():
    async def scenario():
        store = _store(100)
        broker = LongPollBroker(store, timeout=5.0)
        received = []
        # Watermark ahead of anything the next append brings
        broker.add(received.append, 500)
        store.append(Sample(time=150, value=1.0, metric="T"))
        broker.notify()
        return received

    received = asyncio.run(scenario())

    assert received[0].kind == "data"
    assert received[0].samples is None
    assert received[0].to_dict() == {"data": []}


def test_shutdown_notifies_every_pending_request():
    loop = asyncio.new_event_loop()
    try:
        broker = LongPollBroker(_store(100), timeout=60.0, loop=loop)
        received = []
        broker.add(received.append, 100)
        broker.add(received.append, 0)

        broker.shutdown()

        assert [r.to_dict() for r in received] == [{"status": "shutdown"}] * 2
        assert broker.pending_count() == 0
        assert not broker.timer_armed
    finally:
        loop.close()


def test_serve_without_pending_requests_is_harmless():
    loop = asyncio.new_event_loop()
    try:
        broker = LongPollBroker(_store(), timeout=60.0, loop=loop)
        broker.serve()
        broker.notify()
        assert broker.pending_count() == 0
    finally:
        loop.close()


def test_failing_requester_does_not_block_others(caplog):
    loop = asyncio.new_event_loop()
    try:
        store = _store(100)
        broker = LongPollBroker(store, timeout=60.0, loop=loop)
        received = []

        def broken(response):
            raise RuntimeError("connection reset")

        broker.add(broken, 100)
        broker.add(received.append, 100)
        store.append(Sample(time=120, value=1.0, metric="T"))
        broker.notify()

        assert [s.time for s in received[0].samples] == [120]
        assert "connection reset" in caplog.text
    finally:
        loop.close()


def test_data_response_serializes_records():
    response = PollResponse.data([Sample(time=5, value=21.5, metric="T")])
    assert response.to_dict() == {"data": [{"m": "T", "t": 5, "v": 21.5}]}
    assert PollResponse.shutting_down().to_dict() == {"status": "shutdown"}
