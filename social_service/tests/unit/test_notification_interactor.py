from unittest.mock import AsyncMock

import pytest

from social_service.domain.errors import NotFoundError
from social_service.domain.events import NotificationCreated
from social_service.gateways.notification_gateway import NotificationGateway
from social_service.infrastructure import schemas
from social_service.interactors.notification_interactor import NotificationInteractor
from social_service.realtime.connection import Connection
from social_service.tests.fakes import FakeTransport


@pytest.fixture
def dispatcher():
    dispatcher = AsyncMock()
    return dispatcher


@pytest.fixture
def notifications(db_session, uow, registry, dispatcher):
    return NotificationInteractor(
        uow, NotificationGateway(db_session, uow), registry, dispatcher, page_size=3
    )


async def online(registry, user):
    transport = FakeTransport()
    connection = Connection(transport)
    connection.bind(user.id)
    await registry.register(user.id, connection)
    return transport


class TestNotificationInteractor:
    @pytest.mark.asyncio
    async def test_enqueue_persists_pushes_and_publishes(
        self, notifications, registry, dispatcher, make_user
    ):
        sender = await make_user("sender")
        recipient = await make_user("recipient")
        transport = await online(registry, recipient)

        notification = await notifications.enqueue(
            recipient.id,
            sender.id,
            schemas.NotificationType.GROUP_ADDED,
            "You have been added to Hikers",
            link="/groups/1",
            metadata={"groupId": 1, "groupName": "Hikers"},
        )

        assert notification.id is not None
        assert notification.is_read is False
        assert notification.sender.username == sender.username
        assert notification.metadata == {"groupId": 1, "groupName": "Hikers"}

        pushed = transport.events("new_notification")
        assert len(pushed) == 1
        assert pushed[0]["id"] == notification.id
        assert pushed[0]["type"] == "group_added"
        assert pushed[0]["metadata"]["groupName"] == "Hikers"

        event = dispatcher.dispatch.call_args[0][0]
        assert isinstance(event, NotificationCreated)
        assert event.recipient_id == recipient.id

    @pytest.mark.asyncio
    async def test_self_notification_is_skipped(
        self, notifications, dispatcher, make_user
    ):
        user = await make_user("self")

        result = await notifications.enqueue(
            user.id, user.id, "new_message", "talking to myself"
        )

        assert result is None
        assert await notifications.get_unread_count(user.id) == 0
        dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_type_is_rejected(self, notifications, make_user):
        user = await make_user("user")
        with pytest.raises(ValueError):
            await notifications.enqueue(user.id, None, "party_invite", "hi")

    @pytest.mark.asyncio
    async def test_listing_is_newest_first_and_capped(self, notifications, make_user):
        user = await make_user("user")
        for i in range(4):
            await notifications.enqueue(user.id, None, "group_added", f"n{i}")

        listed = await notifications.get_notifications(user.id)

        assert [n.message for n in listed] == ["n3", "n2", "n1"]
        assert await notifications.get_unread_count(user.id) == 4

    @pytest.mark.asyncio
    async def test_mark_read_and_mark_all_read(self, notifications, make_user):
        user = await make_user("user")
        other = await make_user("other")
        first = await notifications.enqueue(user.id, None, "group_added", "first")
        await notifications.enqueue(user.id, None, "group_added", "second")
        foreign = await notifications.enqueue(other.id, None, "group_added", "theirs")

        marked = await notifications.mark_read(first.id, user.id)
        assert marked.is_read is True
        assert await notifications.get_unread_count(user.id) == 1

        with pytest.raises(NotFoundError):
            await notifications.mark_read(foreign.id, user.id)

        assert await notifications.mark_all_read(user.id) == 1
        assert await notifications.get_unread_count(user.id) == 0
        assert await notifications.get_unread_count(other.id) == 1

    @pytest.mark.asyncio
    async def test_delete_notification(self, notifications, make_user):
        user = await make_user("user")
        created = await notifications.enqueue(user.id, None, "group_added", "bye")

        await notifications.delete_notification(created.id, user.id)

        assert await notifications.get_notifications(user.id) == []
        with pytest.raises(NotFoundError):
            await notifications.delete_notification(created.id, user.id)

    @pytest.mark.asyncio
    async def test_works_without_registry_or_dispatcher(self, db_session, uow, make_user):
        user = await make_user("user")
        plain = NotificationInteractor(uow, NotificationGateway(db_session, uow))

        created = await plain.enqueue(user.id, None, "group_kicked", "removed")

        assert created.type is schemas.NotificationType.GROUP_KICKED
