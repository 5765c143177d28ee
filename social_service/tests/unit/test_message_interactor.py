from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from social_service.domain.errors import AuthorizationError, NotFoundError, ValidationFailure
from social_service.domain.events import DirectMessageCreated, DirectMessageRead
from social_service.gateways.message_gateway import DirectMessageGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import models, schemas
from social_service.interactors.message_interactor import DirectMessageInteractor


@pytest.fixture
def dispatcher():
    return AsyncMock()


@pytest.fixture
def messages(db_session, uow, dispatcher):
    return DirectMessageInteractor(
        uow,
        DirectMessageGateway(db_session, uow),
        UserGateway(db_session, uow),
        dispatcher,
        max_length=20,
    )


@pytest.fixture
async def friends(make_user, befriend):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await befriend(alice, bob)
    return alice, bob


async def stored_messages(db_session):
    result = await db_session.execute(select(func.count(models.DirectMessage.id)))
    return result.scalar_one()


class TestSendMessage:
    @pytest.mark.asyncio
    async def test_send_between_friends(self, messages, friends, dispatcher):
        alice, bob = friends

        message = await messages.send_message(
            alice.id, schemas.DirectMessageCreate(receiver_id=bob.id, content="  hi bob  ")
        )

        assert message.content == "hi bob"
        assert message.sender.username == alice.username
        assert message.receiver.id == bob.id
        assert message.is_read is False
        event = dispatcher.dispatch.call_args[0][0]
        assert isinstance(event, DirectMessageCreated)
        assert event.message_id == message.id

    @pytest.mark.asyncio
    async def test_strangers_cannot_message(self, messages, make_user, db_session):
        alice = await make_user("alice")
        carol = await make_user("carol")

        with pytest.raises(AuthorizationError, match="only send messages to friends"):
            await messages.send_message(
                alice.id, schemas.DirectMessageCreate(receiver_id=carol.id, content="hi")
            )
        assert await stored_messages(db_session) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   ", "x" * 21])
    async def test_invalid_text_is_rejected(self, messages, friends, db_session, content):
        alice, bob = friends
        with pytest.raises(ValidationFailure):
            await messages.send_message(
                alice.id, schemas.DirectMessageCreate(receiver_id=bob.id, content=content)
            )
        assert await stored_messages(db_session) == 0

    @pytest.mark.asyncio
    async def test_media_message_needs_url(self, messages, friends):
        alice, bob = friends
        with pytest.raises(ValidationFailure, match="media_url"):
            await messages.send_message(
                alice.id,
                schemas.DirectMessageCreate(receiver_id=bob.id, message_type="image"),
            )

        sent = await messages.send_message(
            alice.id,
            schemas.DirectMessageCreate(
                receiver_id=bob.id, message_type="image", media_url="https://img/1.png"
            ),
        )
        assert sent.content is None and sent.media_url == "https://img/1.png"


class TestMarkRead:
    @pytest.mark.asyncio
    async def test_receiver_marks_read_once(self, messages, friends, dispatcher):
        alice, bob = friends
        sent = await messages.send_message(
            alice.id, schemas.DirectMessageCreate(receiver_id=bob.id, content="read me")
        )
        dispatcher.dispatch.reset_mock()

        message, changed = await messages.mark_read(sent.id, bob.id)
        assert changed is True and message.is_read is True
        assert isinstance(dispatcher.dispatch.call_args[0][0], DirectMessageRead)

        dispatcher.dispatch.reset_mock()
        _, changed_again = await messages.mark_read(sent.id, bob.id)
        assert changed_again is False
        dispatcher.dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_only_receiver_can_mark_read(self, messages, friends):
        alice, bob = friends
        sent = await messages.send_message(
            alice.id, schemas.DirectMessageCreate(receiver_id=bob.id, content="mine")
        )
        with pytest.raises(AuthorizationError):
            await messages.mark_read(sent.id, alice.id)

    @pytest.mark.asyncio
    async def test_unknown_message(self, messages, friends):
        _, bob = friends
        with pytest.raises(NotFoundError, match="Message not found"):
            await messages.mark_read(999, bob.id)


class TestConversation:
    @pytest.mark.asyncio
    async def test_pages(self, messages, friends):
        alice, bob = friends
        for i in range(5):
            await messages.send_message(
                alice.id, schemas.DirectMessageCreate(receiver_id=bob.id, content=f"m{i}")
            )

        page = await messages.get_conversation(bob.id, alice.id, page=1, limit=2)

        assert [m.content for m in page.messages] == ["m3", "m4"]
        assert (page.total, page.pages) == (5, 3)
        assert await messages.get_unread_count(bob.id, alice.id) == 5

    @pytest.mark.asyncio
    async def test_unknown_friend(self, messages, friends):
        alice, _ = friends
        with pytest.raises(NotFoundError, match="User not found"):
            await messages.get_conversation(alice.id, 999)

    @pytest.mark.asyncio
    async def test_delete_is_sender_only_and_hides_message(self, messages, friends):
        alice, bob = friends
        sent = await messages.send_message(
            alice.id, schemas.DirectMessageCreate(receiver_id=bob.id, content="oops")
        )

        with pytest.raises(AuthorizationError):
            await messages.delete_message(sent.id, bob.id)
        deleted = await messages.delete_message(sent.id, alice.id)

        assert deleted.is_deleted is True
        page = await messages.get_conversation(alice.id, bob.id)
        assert page.total == 0
        with pytest.raises(NotFoundError):
            await messages.mark_read(sent.id, bob.id)
