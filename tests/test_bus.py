import asyncio

import pytest

from streambridge.bus import Empty, Lagged, Topic, TopicClosed


def test_publish_without_subscribers_is_not_an_error():
    topic = Topic("t")
    assert topic.publish("hello") == 0


def test_each_subscriber_gets_every_message_in_order():
    topic = Topic("t")
    a = topic.subscribe()
    b = topic.subscribe()

    assert topic.publish(1) == 2
    assert topic.publish(2) == 2

    assert [a.try_recv(), a.try_recv()] == [1, 2]
    assert [b.try_recv(), b.try_recv()] == [1, 2]
    with pytest.raises(Empty):
        a.try_recv()


def test_late_subscriber_misses_earlier_messages():
    topic = Topic("t")
    topic.subscribe()
    topic.publish("early")
    late = topic.subscribe()
    topic.publish("late")
    assert late.try_recv() == "late"


def test_overflow_reports_lag_then_resumes():
    topic = Topic("t", capacity=2)
    sub = topic.subscribe()
    for i in range(5):
        topic.publish(i)

    with pytest.raises(Lagged) as info:
        sub.try_recv()
    assert info.value.skipped == 3
    # oldest messages were dropped
    assert sub.try_recv() == 3
    assert sub.try_recv() == 4


def test_close_drains_then_raises():
    topic = Topic("t")
    sub = topic.subscribe()
    topic.publish("last")
    topic.close()

    with pytest.raises(TopicClosed):
        topic.publish("more")
    assert sub.try_recv() == "last"
    with pytest.raises(TopicClosed):
        sub.try_recv()
    assert topic.subscriber_count == 0


def test_unsubscribe():
    topic = Topic("t")
    sub = topic.subscribe()
    assert topic.subscriber_count == 1
    sub.close()
    assert topic.subscriber_count == 0
    assert topic.publish("x") == 0


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        Topic("t", capacity=0)


@pytest.mark.asyncio
async def test_recv_waits_for_publish():
    topic = Topic("t")
    sub = topic.subscribe()

    waiter = asyncio.create_task(sub.recv())
    await asyncio.sleep(0)
    assert not waiter.done()

    topic.publish("hello")
    assert await asyncio.wait_for(waiter, timeout=1.0) == "hello"


@pytest.mark.asyncio
async def test_recv_wakes_on_close():
    topic = Topic("t")
    sub = topic.subscribe()

    waiter = asyncio.create_task(sub.recv())
    await asyncio.sleep(0)
    topic.close()

    with pytest.raises(TopicClosed):
        await asyncio.wait_for(waiter, timeout=1.0)
