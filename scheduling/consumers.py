# scheduling/consumers.py
import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from scheduling.events import calendar_group

logger = logging.getLogger(__name__)


class CalendarConsumer(AsyncJsonWebsocketConsumer):
    """
    Live calendar for one tutor. Clients re-fetch slots when an event
    arrives instead of polling.
    """

    async def connect(self):
        # Reject if not authenticated
        user = self.scope.get("user", AnonymousUser())
        if not user or user.is_anonymous:
            await self.close(code=4401)  # unauthorized
            return

        self.tutor_id = str(self.scope["url_route"]["kwargs"]["tutor_id"])
        self.group_name = calendar_group(self.tutor_id)

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.debug("user %s subscribed to %s", user.pk, self.group_name)

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        # read-only channel; answer pings so clients can keep the socket warm
        if isinstance(content, dict) and content.get("type") == "ping":
            await self.send_json({"type": "pong"})

    async def calendar_event(self, event):
        """Handler for events.publish() -> group_send."""
        await self.send_json({
            "event": event.get("event"),
            "payload": event.get("payload", {}),
        })
