# social_service/gateways/user_gateway.py

from sqlalchemy import and_, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import IUserGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import UserMapper
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class UserGateway(IUserGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.User] = UserMapper(session)

    async def get_user(self, user_id: int) -> UoWModel | None:
        stmt = select(models.User).filter(models.User.id == user_id)
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_email(self, email: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.email) == func.lower(email)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_username(self, username: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.username) == func.lower(username)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def create_user(
        self, user: schemas.UserCreate, security_service: SecurityService
    ) -> UoWModel | None:
        if await self.get_by_email(user.email):
            return None
        if await self.get_by_username(user.username):
            return None

        hashed_password = security_service.get_password_hash(user.password)
        db_user = models.User(
            **user.model_dump(exclude={"password"}), hashed_password=hashed_password
        )
        uow_user = self.uow.register_new(db_user)
        await self.uow.commit()
        return uow_user

    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        return security_service.verify_password(password, user._model.hashed_password)

    async def get_existing_ids(self, user_ids: list[int]) -> set[int]:
        if not user_ids:
            return set()
        stmt = select(models.User.id).filter(models.User.id.in_(user_ids))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def get_friend_ids(self, user_id: int) -> list[int]:
        stmt = select(models.friendships.c.friend_id).filter(
            models.friendships.c.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_friends(self, user_id: int) -> list[UoWModel]:
        stmt = (
            select(models.User)
            .join(
                models.friendships,
                models.friendships.c.friend_id == models.User.id,
            )
            .filter(models.friendships.c.user_id == user_id)
            .order_by(models.User.username)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(user, self.uow) for user in result.scalars().all()]

    async def are_friends(self, user_id: int, other_user_id: int) -> bool:
        stmt = select(func.count()).select_from(models.friendships).filter(
            and_(
                models.friendships.c.user_id == user_id,
                models.friendships.c.friend_id == other_user_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def add_friendship(self, user_id: int, other_user_id: int) -> None:
        if user_id == other_user_id:
            raise ValueError("A user cannot befriend themself")
        rows = []
        if not await self.are_friends(user_id, other_user_id):
            rows.append({"user_id": user_id, "friend_id": other_user_id})
        if not await self.are_friends(other_user_id, user_id):
            rows.append({"user_id": other_user_id, "friend_id": user_id})
        if rows:
            await self.session.execute(insert(models.friendships), rows)
            await self.session.commit()
