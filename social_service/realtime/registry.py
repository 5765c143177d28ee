# social_service/realtime/registry.py
import asyncio
from collections import defaultdict
from typing import Any, Iterable

from social_service.realtime.connection import Connection


def group_room(group_id: int) -> str:
    return f"group:{group_id}"


class ConnectionRegistry:
    """Live connections per user and per broadcast room.

    The maps are only touched under the lock; frames are sent after the lock
    is released so a slow socket never blocks registration.
    """

    def __init__(self) -> None:
        self._by_user: dict[int, set[Connection]] = defaultdict(set)
        self._rooms: dict[str, set[Connection]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def register(self, user_id: int, connection: Connection) -> bool:
        """Add a connection; returns True when the user just came online."""
        async with self._lock:
            came_online = not self._by_user.get(user_id)
            self._by_user[user_id].add(connection)
            return came_online

    async def unregister(self, connection: Connection) -> bool:
        """Drop a connection from every map; True when its user went offline."""
        async with self._lock:
            for room, members in list(self._rooms.items()):
                members.discard(connection)
                if not members:
                    del self._rooms[room]

            user_id = connection.user_id
            if user_id is None:
                return False
            connections = self._by_user.get(user_id)
            if not connections or connection not in connections:
                return False
            connections.discard(connection)
            if connections:
                return False
            del self._by_user[user_id]
            return True

    def is_online(self, user_id: int) -> bool:
        return bool(self._by_user.get(user_id))

    def online_user_ids(self) -> list[int]:
        return sorted(user_id for user_id, conns in self._by_user.items() if conns)

    def connection_count(self, user_id: int) -> int:
        return len(self._by_user.get(user_id, ()))

    async def send(self, user_id: int, event: str, data: Any) -> int:
        """Deliver to every connection of the user; no-op when offline."""
        async with self._lock:
            targets = list(self._by_user.get(user_id, ()))
        return await self._deliver(targets, event, data)

    async def send_many(self, user_ids: Iterable[int], event: str, data: Any) -> int:
        async with self._lock:
            targets = [
                conn
                for user_id in set(user_ids)
                for conn in self._by_user.get(user_id, ())
            ]
        return await self._deliver(targets, event, data)

    async def join_room(self, room: str, connection: Connection) -> bool:
        """Subscribe; returns False when the connection was already in the room."""
        async with self._lock:
            members = self._rooms[room]
            if connection in members:
                return False
            members.add(connection)
            return True

    async def leave_room(self, room: str, connection: Connection) -> bool:
        async with self._lock:
            members = self._rooms.get(room)
            if not members or connection not in members:
                return False
            members.discard(connection)
            if not members:
                del self._rooms[room]
            return True

    def in_room(self, room: str, connection: Connection) -> bool:
        return connection in self._rooms.get(room, ())

    async def evict_user(self, room: str, user_id: int) -> list[Connection]:
        """Unsubscribe all of a user's connections from a room."""
        async with self._lock:
            members = self._rooms.get(room)
            if not members:
                return []
            evicted = [conn for conn in members if conn.user_id == user_id]
            for conn in evicted:
                members.discard(conn)
            if not members:
                del self._rooms[room]
            return evicted

    async def close_room(self, room: str) -> list[Connection]:
        async with self._lock:
            return list(self._rooms.pop(room, ()))

    async def broadcast(
        self,
        room: str,
        event: str,
        data: Any,
        exclude: Connection | None = None,
    ) -> int:
        async with self._lock:
            targets = [conn for conn in self._rooms.get(room, ()) if conn is not exclude]
        return await self._deliver(targets, event, data)

    @staticmethod
    async def _deliver(targets: list[Connection], event: str, data: Any) -> int:
        delivered = 0
        for conn in targets:
            if await conn.emit(event, data):
                delivered += 1
        return delivered
