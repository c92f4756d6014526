import uuid
from datetime import datetime, timezone as dt_timezone
from unittest import mock

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from scheduling import events
from scheduling.routing import websocket_urlpatterns
from scheduling.tests.helpers import make_tutor


class PublishTests(TestCase):
    def test_nothing_sent_before_commit(self):
        tutor_id = uuid.uuid4()
        with mock.patch("scheduling.events._send") as send:
            with self.captureOnCommitCallbacks(execute=False) as callbacks:
                events.publish(tutor_id, events.CalendarEvent.BOOKING_DELETED, {"id": "x"})
            send.assert_not_called()
            for callback in callbacks:
                callback()
        send.assert_called_once_with(tutor_id, events.CalendarEvent.BOOKING_DELETED, {"id": "x"})

    def test_group_receives_json_safe_payload(self):
        layer = get_channel_layer()
        tutor_id = uuid.uuid4()
        channel = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)(events.calendar_group(tutor_id), channel)

        when = datetime(2030, 1, 7, 10, tzinfo=dt_timezone.utc)
        events._send(tutor_id, events.CalendarEvent.BOOKING_CREATED, {"id": uuid.UUID(int=1), "at": when})

        message = async_to_sync(layer.receive)(channel)
        self.assertEqual(message["type"], "calendar.event")
        self.assertEqual(message["event"], "booking.created")
        self.assertEqual(message["payload"]["id"], "00000000-0000-0000-0000-000000000001")
        self.assertTrue(message["payload"]["at"].startswith("2030-01-07T10:00:00"))

    def test_delivery_failure_is_logged_not_raised(self):
        broken = mock.Mock()
        broken.group_send = mock.AsyncMock(side_effect=RuntimeError("layer down"))
        with mock.patch("scheduling.events.get_channel_layer", return_value=broken):
            with self.assertLogs("scheduling.events", level="WARNING"):
                events._send(uuid.uuid4(), events.CalendarEvent.BOOKING_CREATED, {})


class CalendarConsumerTests(TestCase):
    def setUp(self):
        self.tutor = make_tutor()
        self.app = URLRouter(websocket_urlpatterns)

    async def test_subscriber_receives_events(self):
        communicator = WebsocketCommunicator(self.app, f"/ws/calendar/{self.tutor.pk}/")
        communicator.scope["user"] = self.tutor
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        await get_channel_layer().group_send(
            events.calendar_group(self.tutor.pk),
            {"type": "calendar.event", "event": "availability.changed", "payload": {"action": "added"}},
        )
        message = await communicator.receive_json_from()
        self.assertEqual(message, {"event": "availability.changed", "payload": {"action": "added"}})

        await communicator.send_json_to({"type": "ping"})
        self.assertEqual(await communicator.receive_json_from(), {"type": "pong"})
        await communicator.disconnect()

    async def test_anonymous_is_rejected(self):
        communicator = WebsocketCommunicator(self.app, f"/ws/calendar/{self.tutor.pk}/")
        communicator.scope["user"] = AnonymousUser()
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4401)
