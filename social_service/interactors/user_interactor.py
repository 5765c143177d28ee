# social_service/interactors/user_interactor.py

from social_service.gateways.interfaces import IUserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UoWModel


class UserInteractor:
    def __init__(self, security_service: SecurityService, user_gateway: IUserGateway):
        self.security_service = security_service
        self.user_gateway = user_gateway

    async def get_user(self, user_id: int) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_user(user_id)
        return schemas.User.model_validate(user._model) if user else None

    async def get_user_basic(self, user_id: int) -> schemas.UserBasic | None:
        user: UoWModel | None = await self.user_gateway.get_user(user_id)
        return schemas.UserBasic.model_validate(user._model) if user else None

    async def get_user_by_username(self, username: str) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_by_username(username)
        return schemas.User.model_validate(user._model) if user else None

    async def get_user_by_email(self, email: str) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_by_email(email)
        return schemas.User.model_validate(user._model) if user else None

    async def create_user(self, user: schemas.UserCreate) -> schemas.User | None:
        new_user: UoWModel | None = await self.user_gateway.create_user(
            user, self.security_service
        )
        return schemas.User.model_validate(new_user._model) if new_user else None

    async def verify_user_password(
        self, username: str, password: str
    ) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_by_username(username)
        if not user:
            return None
        if await self.user_gateway.verify_password(
            user, password, self.security_service
        ):
            return schemas.User.model_validate(user._model)
        return None

    async def get_friends(self, user_id: int) -> list[schemas.UserBasic]:
        friends: list[UoWModel] = await self.user_gateway.get_friends(user_id)
        return [schemas.UserBasic.model_validate(friend._model) for friend in friends]

    async def get_friend_ids(self, user_id: int) -> list[int]:
        return await self.user_gateway.get_friend_ids(user_id)
