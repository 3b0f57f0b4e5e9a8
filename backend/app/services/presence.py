"""Module: presence.

Process-local registry of live WebSocket connections keyed by user id. It is
rebuilt from scratch on restart and nothing durable depends on it; message
history always comes from the database.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        # room -> user id -> sockets (a user may have several tabs open)
        self._rooms: dict[str, dict[uuid.UUID, set[WebSocket]]] = defaultdict(lambda: defaultdict(set))

    async def connect(self, room: str, user_id: uuid.UUID, websocket: WebSocket) -> None:
        async with self._lock:
            self._rooms[room][user_id].add(websocket)
        logger.debug("User %s joined room %s", user_id, room)

    async def disconnect(self, room: str, user_id: uuid.UUID, websocket: WebSocket) -> None:
        async with self._lock:
            users = self._rooms.get(room)
            if not users:
                return
            sockets = users.get(user_id)
            if sockets:
                sockets.discard(websocket)
                if not sockets:
                    del users[user_id]
            if not users:
                del self._rooms[room]
        logger.debug("User %s left room %s", user_id, room)

    def online_user_ids(self, room: str) -> list[uuid.UUID]:
        return list(self._rooms.get(room, {}).keys())

    async def broadcast(self, room: str, payload: dict) -> None:
        async with self._lock:
            targets = [ws for sockets in self._rooms.get(room, {}).values() for ws in sockets]
        for ws in targets:
            try:
                await ws.send_json(payload)
            except (RuntimeError, ConnectionError) as exc:
                # Socket closed between snapshot and send; its handler unregisters it.
                logger.debug("Dropping message to closed socket in room %s: %s", room, exc)


# Shared instance for this process.
registry = ConnectionRegistry()


def community_room(community_id: uuid.UUID) -> str:
    return f"community:{community_id}"
