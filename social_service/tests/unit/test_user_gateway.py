from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import UserMapper
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork, UoWModel


@pytest.fixture
def mock_session():
    session = Mock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    return session


@pytest.fixture
def mock_uow():
    uow = Mock(spec=UnitOfWork)
    uow.mappers = {}
    uow.commit = AsyncMock()
    uow.register_new = Mock()
    uow.register_dirty = Mock()
    uow.register_deleted = Mock()
    uow.new = {}
    return uow


@pytest.fixture
def mock_security_service():
    service = Mock(spec=SecurityService)
    service.get_password_hash = Mock(return_value="hashed_password")
    service.verify_password = Mock(return_value=True)
    return service


@pytest.fixture
def user_gateway(mock_session, mock_uow):
    return UserGateway(mock_session, mock_uow)


@pytest.fixture
def mock_user():
    user = Mock(spec=models.User)
    user.id = 1
    user.username = "testuser"
    user.email = "test@example.com"
    user.hashed_password = "hashed_password"
    user.is_active = True
    return user


@pytest.fixture
def mock_uow_user(mock_user, mock_uow):
    return UoWModel(mock_user, mock_uow)


def scalar_result(value):
    result = Mock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    return result


class TestUserGateway:
    def test_registers_user_mapper(self, user_gateway, mock_uow):
        assert isinstance(mock_uow.mappers[models.User], UserMapper)

    @pytest.mark.asyncio
    async def test_get_user_found(self, user_gateway, mock_session, mock_user):
        mock_session.execute.return_value = scalar_result(mock_user)

        result = await user_gateway.get_user(1)

        assert isinstance(result, UoWModel)
        assert result._model == mock_user
        mock_session.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, user_gateway, mock_session):
        mock_session.execute.return_value = scalar_result(None)

        assert await user_gateway.get_user(999) is None

    @pytest.mark.asyncio
    async def test_get_by_username_found(self, user_gateway, mock_session, mock_user):
        mock_session.execute.return_value = scalar_result(mock_user)

        result = await user_gateway.get_by_username("TESTUSER")

        assert result is not None
        mock_session.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_create_user_success(self, user_gateway, mock_security_service, mock_uow):
        user_gateway.get_by_email = AsyncMock(return_value=None)
        user_gateway.get_by_username = AsyncMock(return_value=None)
        mock_uow_user = Mock()
        mock_uow.register_new.return_value = mock_uow_user

        user_create = schemas.UserCreate(
            username="newuser", email="new@example.com", password="password123"
        )
        result = await user_gateway.create_user(user_create, mock_security_service)

        assert result == mock_uow_user
        mock_security_service.get_password_hash.assert_called_once_with("password123")
        registered = mock_uow.register_new.call_args[0][0]
        assert registered.hashed_password == "hashed_password"
        mock_uow.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_create_user_email_exists(
        self, user_gateway, mock_security_service, mock_uow_user
    ):
        user_gateway.get_by_email = AsyncMock(return_value=mock_uow_user)
        user_gateway.get_by_username = AsyncMock(return_value=None)

        user_create = schemas.UserCreate(
            username="newuser", email="existing@example.com", password="password123"
        )
        result = await user_gateway.create_user(user_create, mock_security_service)

        assert result is None
        mock_security_service.get_password_hash.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_password(self, user_gateway, mock_uow_user, mock_security_service):
        mock_security_service.verify_password.return_value = False

        result = await user_gateway.verify_password(
            mock_uow_user, "wrong_password", mock_security_service
        )

        assert result is False
        mock_security_service.verify_password.assert_called_once_with(
            "wrong_password", "hashed_password"
        )

    @pytest.mark.asyncio
    async def test_get_existing_ids_skips_query_for_empty_input(
        self, user_gateway, mock_session
    ):
        assert await user_gateway.get_existing_ids([]) == set()
        mock_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_are_friends(self, user_gateway, mock_session):
        mock_session.execute.return_value = scalar_result(1)
        assert await user_gateway.are_friends(1, 2) is True

        mock_session.execute.return_value = scalar_result(0)
        assert await user_gateway.are_friends(1, 3) is False

    @pytest.mark.asyncio
    async def test_add_friendship_with_self_is_rejected(self, user_gateway):
        with pytest.raises(ValueError):
            await user_gateway.add_friendship(1, 1)


class TestUserGatewayStore:
    @pytest.mark.asyncio
    async def test_friendship_is_mutual_and_idempotent(
        self, db_session, uow, make_user
    ):
        alice = await make_user("alice")
        bob = await make_user("bob")
        gateway = UserGateway(db_session, uow)

        await gateway.add_friendship(alice.id, bob.id)
        await gateway.add_friendship(bob.id, alice.id)

        assert await gateway.are_friends(alice.id, bob.id)
        assert await gateway.are_friends(bob.id, alice.id)
        assert await gateway.get_friend_ids(alice.id) == [bob.id]
        friends = await gateway.get_friends(bob.id)
        assert [f.username for f in friends] == [alice.username]

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, db_session, uow, make_user):
        carol = await make_user("carol")
        gateway = UserGateway(db_session, uow)

        found = await gateway.get_by_email(carol.email.upper())

        assert found is not None and found.id == carol.id

    @pytest.mark.asyncio
    async def test_get_existing_ids(self, db_session, uow, make_user):
        dave = await make_user("dave")
        gateway = UserGateway(db_session, uow)

        assert await gateway.get_existing_ids([dave.id, 9999]) == {dave.id}
