# social_service/realtime/presence.py
import logging

from social_service.interactors.user_interactor import UserInteractor
from social_service.realtime import protocol
from social_service.realtime.registry import ConnectionRegistry


class PresenceBroadcaster:
    """Tells a user's online friends when the user comes online or goes offline.

    Best effort only: friends without a live connection get nothing and
    nothing is queued for them.
    """

    def __init__(self, registry: ConnectionRegistry, logger: logging.Logger):
        self.registry = registry
        self.logger = logger

    def snapshot(self) -> list[int]:
        return self.registry.online_user_ids()

    async def _announce(self, user_id: int, event: str, users: UserInteractor) -> int:
        friend_ids = await users.get_friend_ids(user_id)
        delivered = await self.registry.send_many(friend_ids, event, {"userId": user_id})
        self.logger.debug(f"{event} for user {user_id} reached {delivered} connection(s)")
        return delivered

    async def announce_online(self, user_id: int, users: UserInteractor) -> int:
        return await self._announce(user_id, protocol.USER_ONLINE, users)

    async def announce_offline(self, user_id: int, users: UserInteractor) -> int:
        return await self._announce(user_id, protocol.USER_OFFLINE, users)
