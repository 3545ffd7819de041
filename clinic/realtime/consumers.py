import json
from channels.generic.websocket import AsyncWebsocketConsumer

from clinic.services.appointments import QUEUE_GROUP


class QueueUpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes ``queue.refresh`` events so dashboards re-fetch the queue."""
    GROUP = QUEUE_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def queue_refresh(self, event):
        # event: {"type": "queue.refresh", "appointmentId": int, "status": str, "ts": "..."}
        await self.send(json.dumps(event))
