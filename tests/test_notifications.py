import pytest

from app.services.notification_service import NotificationService


@pytest.mark.asyncio
async def test_publish_calls_handlers_in_order():
    service = NotificationService()
    calls = []

    async def first(event, payload):
        calls.append(("first", event, payload))

    async def second(event, payload):
        calls.append(("second", event, payload))

    service.subscribe(first)
    service.subscribe(second)
    await service.publish("match.mutual", {"match_id": "m1"})

    assert calls == [
        ("first", "match.mutual", {"match_id": "m1"}),
        ("second", "match.mutual", {"match_id": "m1"}),
    ]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others(caplog):
    service = NotificationService()
    calls = []

    async def broken(event, payload):
        raise ConnectionError("socket closed")

    async def working(event, payload):
        calls.append(event)

    service.subscribe(broken)
    service.subscribe(working)
    await service.publish("match.interaction", {})

    assert calls == ["match.interaction"]
    assert "Notification handler failed" in caplog.text


@pytest.mark.asyncio
async def test_unsubscribe_and_clear():
    service = NotificationService()
    calls = []

    async def handler(event, payload):
        calls.append(event)

    service.subscribe(handler)
    service.unsubscribe(handler)
    service.unsubscribe(handler)
    await service.publish("match.mutual", {})
    assert calls == []

    service.subscribe(handler)
    service.clear()
    await service.publish("match.mutual", {})
    assert calls == []
