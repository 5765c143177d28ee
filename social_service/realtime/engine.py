# social_service/realtime/engine.py
import logging
from typing import Any, Awaitable, Callable

from social_service.domain.errors import (
    AuthorizationError,
    ConflictError,
    DomainError,
    ModerationError,
    NotFoundError,
)
from social_service.infrastructure import schemas
from social_service.interactors.membership_interactor import is_banned_in
from social_service.realtime import protocol
from social_service.realtime.connection import Connection, Transport
from social_service.realtime.presence import PresenceBroadcaster
from social_service.realtime.registry import ConnectionRegistry, group_room
from social_service.realtime.services import ServiceFactory

Handler = Callable[[Connection, Any], Awaitable[None]]


class DispatchEngine:
    """Handles every inbound realtime event.

    Each handler runs inside one boundary: domain errors become an ``error``
    frame for the originating connection, anything else is logged and
    reported as a generic failure. Writes commit before any frame is sent.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        services: ServiceFactory,
        logger: logging.Logger,
    ):
        self.registry = registry
        self.services = services
        self.logger = logger
        self.presence = PresenceBroadcaster(registry, logger)
        self._handlers: dict[str, Handler] = {
            "join": self._on_join,
            "send_message": self._on_send_message,
            "typing": self._on_typing,
            "stop_typing": self._on_typing,
            "mark_read": self._on_mark_read,
            "join_group": self._on_join_group,
            "leave_group": self._on_leave_group,
            "send_group_message": self._on_send_group_message,
            "group_typing": self._on_group_typing,
            "group_stop_typing": self._on_group_typing,
        }

    def connect(self, transport: Transport) -> Connection:
        connection = Connection(transport)
        self.logger.debug(f"Opened {connection!r}")
        return connection

    async def handle_frame(self, connection: Connection, raw: Any) -> None:
        if connection.is_closed:
            return
        try:
            event = protocol.parse_frame(raw)
        except protocol.FrameError as e:
            self.logger.info(f"Rejected frame on {connection!r}: {e.message}")
            await self._send_error(connection, e, e.event)
            return
        await self.handle(connection, event)

    async def handle(self, connection: Connection, event: protocol.InboundEvent) -> None:
        if connection.is_closed:
            return
        name = event.event
        try:
            if name != "join" and not connection.is_bound:
                raise AuthorizationError("Connection is not bound to a user")
            await self._handlers[name](connection, event)
        except DomainError as e:
            self.logger.info(f"Rejected {name} from user {connection.user_id}: {e.message}")
            await self._send_error(connection, e, name)
        except Exception:
            self.logger.exception(f"Failed to process {name} for {connection!r}")
            await connection.emit(
                protocol.ERROR,
                {"message": f"Failed to process {name}", "code": "internal", "event": name},
            )

    async def disconnect(self, connection: Connection) -> None:
        if connection.is_closed:
            return
        was_bound = connection.is_bound
        connection.close()
        went_offline = await self.registry.unregister(connection)
        if not was_bound:
            return
        remaining = self.registry.connection_count(connection.user_id)
        self.logger.info(
            f"User {connection.user_id} disconnected ({connection.id}), "
            f"{remaining} connection(s) left"
        )
        if not went_offline:
            return
        try:
            async with self.services.open() as services:
                await self.presence.announce_offline(connection.user_id, services.users)
        except Exception:
            self.logger.exception(f"Failed to announce user {connection.user_id} offline")

    @staticmethod
    async def _send_error(
        connection: Connection, error: DomainError, event: str | None
    ) -> None:
        await connection.emit(
            protocol.ERROR, {"message": error.message, "code": error.code, "event": event}
        )

    async def _on_join(self, connection: Connection, event: protocol.Join) -> None:
        if connection.is_bound:
            if connection.user_id != event.user_id:
                raise ConflictError("Connection is already bound to another user")
            await connection.emit(protocol.ONLINE_USERS, self.presence.snapshot())
            return

        async with self.services.open() as services:
            if await services.users.get_user_basic(event.user_id) is None:
                raise NotFoundError("User not found")
            connection.bind(event.user_id)
            came_online = await self.registry.register(event.user_id, connection)
            self.logger.info(
                f"User {event.user_id} joined ({connection.id}), "
                f"{self.registry.connection_count(event.user_id)} connection(s) open"
            )

            await connection.emit(protocol.ONLINE_USERS, self.presence.snapshot())
            if came_online:
                await self.presence.announce_online(event.user_id, services.users)

    async def _on_send_message(
        self, connection: Connection, event: protocol.SendMessage
    ) -> None:
        sender_id = connection.user_id
        async with self.services.open() as services:
            message = await services.messages.send_message(
                sender_id,
                schemas.DirectMessageCreate(
                    receiver_id=event.receiver_id,
                    content=event.content,
                    message_type=event.message_type,
                    media_url=event.media_url,
                    media_public_id=event.media_public_id,
                ),
            )
            self.logger.info(f"Message {message.id} from {sender_id} to {event.receiver_id}")
            payload = message.model_dump(mode="json")

            await self.registry.send(
                event.receiver_id,
                protocol.RECEIVE_MESSAGE,
                {"message": payload, "senderId": sender_id},
            )
            await connection.emit(
                protocol.MESSAGE_SENT, {"message": payload, "tempId": event.temp_id}
            )

            try:
                await services.notifications.enqueue(
                    event.receiver_id,
                    sender_id,
                    schemas.NotificationType.NEW_MESSAGE,
                    f"{message.sender.username} sent you a message",
                    link=f"/chat/{sender_id}",
                    metadata={"messageId": message.id},
                )
            except Exception:
                # the message is stored and delivered already
                self.logger.exception(f"Notification for message {message.id} failed")

    async def _on_typing(
        self, connection: Connection, event: protocol.Typing | protocol.StopTyping
    ) -> None:
        name = protocol.USER_TYPING if event.event == "typing" else protocol.USER_STOP_TYPING
        await self.registry.send(event.receiver_id, name, {"userId": connection.user_id})

    async def _on_mark_read(self, connection: Connection, event: protocol.MarkRead) -> None:
        async with self.services.open() as services:
            message, changed = await services.messages.mark_read(
                event.message_id, connection.user_id
            )
        if changed:
            await self.registry.send(
                message.sender_id, protocol.MESSAGE_READ, {"messageId": message.id}
            )

    async def _on_join_group(self, connection: Connection, event: protocol.JoinGroup) -> None:
        async with self.services.open() as services:
            group, _ = await services.membership.require_member(
                event.group_id, connection.user_id
            )
            if is_banned_in(group, connection.user_id):
                raise ModerationError("You are banned from this group")

        room = group_room(event.group_id)
        if await self.registry.join_room(room, connection):
            self.logger.info(f"User {connection.user_id} joined room {room}")
            await self.registry.broadcast(
                room,
                protocol.USER_JOINED_GROUP,
                {"userId": connection.user_id, "groupId": event.group_id},
                exclude=connection,
            )

    async def _on_leave_group(
        self, connection: Connection, event: protocol.LeaveGroup
    ) -> None:
        room = group_room(event.group_id)
        if await self.registry.leave_room(room, connection):
            self.logger.info(f"User {connection.user_id} left room {room}")
            await self.registry.broadcast(
                room,
                protocol.USER_LEFT_GROUP,
                {"userId": connection.user_id, "groupId": event.group_id},
            )

    async def _on_send_group_message(
        self, connection: Connection, event: protocol.SendGroupMessage
    ) -> None:
        async with self.services.open() as services:
            message = await services.group_messages.send_message(
                connection.user_id,
                schemas.GroupMessageCreate(
                    group_id=event.group_id,
                    message_type=event.message_type,
                    text=event.content,
                    media_url=event.media_url,
                    media_public_id=event.media_public_id,
                    file_name=event.file_name,
                ),
            )
        self.logger.info(
            f"Group message {message.id} in {event.group_id} from {connection.user_id}"
        )
        payload = message.model_dump(mode="json")

        # the sender's own connections in the room get it too
        await self.registry.broadcast(
            group_room(event.group_id),
            protocol.RECEIVE_GROUP_MESSAGE,
            {"message": payload, "groupId": event.group_id, "tempId": event.temp_id},
        )
        await connection.emit(
            protocol.GROUP_MESSAGE_SENT,
            {"message": payload, "tempId": event.temp_id, "success": True},
        )

    async def _on_group_typing(
        self,
        connection: Connection,
        event: protocol.GroupTyping | protocol.GroupStopTyping,
    ) -> None:
        room = group_room(event.group_id)
        if not self.registry.in_room(room, connection):
            return
        name = (
            protocol.USER_TYPING_GROUP
            if event.event == "group_typing"
            else protocol.USER_STOP_TYPING_GROUP
        )
        await self.registry.broadcast(
            room,
            name,
            {"userId": connection.user_id, "groupId": event.group_id},
            exclude=connection,
        )
