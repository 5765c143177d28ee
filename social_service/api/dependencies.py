# social_service/api/dependencies.py
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.config import AppConfig
from social_service.gateways.group_gateway import GroupGateway
from social_service.gateways.group_message_gateway import GroupMessageGateway
from social_service.gateways.message_gateway import DirectMessageGateway
from social_service.gateways.notification_gateway import NotificationGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork
from social_service.interactors.group_interactor import GroupInteractor
from social_service.interactors.group_message_interactor import GroupMessageInteractor
from social_service.interactors.membership_interactor import MembershipResolver
from social_service.interactors.message_interactor import DirectMessageInteractor
from social_service.interactors.moderation_interactor import ModerationInteractor
from social_service.interactors.notification_interactor import NotificationInteractor
from social_service.interactors.user_interactor import UserInteractor
from social_service.realtime.registry import ConnectionRegistry

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_security_service(request: Request) -> SecurityService:
    return request.app.state.security_service


def get_event_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.event_dispatcher


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_uow(session: AsyncSession = Depends(get_session)) -> UnitOfWork:
    return UnitOfWork(session)


async def get_user_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return UserGateway(session, uow)


async def get_message_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return DirectMessageGateway(session, uow)


async def get_group_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return GroupGateway(session, uow)


async def get_group_message_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return GroupMessageGateway(session, uow)


async def get_notification_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return NotificationGateway(session, uow)


async def get_user_interactor(
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
):
    return UserInteractor(security_service, user_gateway)


async def get_membership_resolver(
    uow: UnitOfWork = Depends(get_uow),
    group_gateway: GroupGateway = Depends(get_group_gateway),
):
    return MembershipResolver(uow, group_gateway)


async def get_notification_interactor(
    uow: UnitOfWork = Depends(get_uow),
    notification_gateway: NotificationGateway = Depends(get_notification_gateway),
    registry: ConnectionRegistry = Depends(get_registry),
    event_dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    config: AppConfig = Depends(get_config),
):
    return NotificationInteractor(
        uow,
        notification_gateway,
        registry,
        event_dispatcher,
        page_size=config.NOTIFICATION_PAGE_SIZE,
    )


async def get_message_interactor(
    uow: UnitOfWork = Depends(get_uow),
    message_gateway: DirectMessageGateway = Depends(get_message_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    event_dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    config: AppConfig = Depends(get_config),
):
    return DirectMessageInteractor(
        uow,
        message_gateway,
        user_gateway,
        event_dispatcher,
        max_length=config.MESSAGE_MAX_LENGTH,
    )


async def get_group_message_interactor(
    uow: UnitOfWork = Depends(get_uow),
    group_message_gateway: GroupMessageGateway = Depends(get_group_message_gateway),
    group_gateway: GroupGateway = Depends(get_group_gateway),
    membership: MembershipResolver = Depends(get_membership_resolver),
    event_dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    config: AppConfig = Depends(get_config),
):
    return GroupMessageInteractor(
        uow,
        group_message_gateway,
        group_gateway,
        membership,
        event_dispatcher,
        max_length=config.MESSAGE_MAX_LENGTH,
        page_size=config.GROUP_MESSAGE_PAGE_SIZE,
    )


async def get_group_interactor(
    uow: UnitOfWork = Depends(get_uow),
    group_gateway: GroupGateway = Depends(get_group_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    membership: MembershipResolver = Depends(get_membership_resolver),
    notifications: NotificationInteractor = Depends(get_notification_interactor),
    registry: ConnectionRegistry = Depends(get_registry),
):
    return GroupInteractor(
        uow, group_gateway, user_gateway, membership, notifications, registry
    )


async def get_moderation_interactor(
    uow: UnitOfWork = Depends(get_uow),
    group_gateway: GroupGateway = Depends(get_group_gateway),
    membership: MembershipResolver = Depends(get_membership_resolver),
    notifications: NotificationInteractor = Depends(get_notification_interactor),
    registry: ConnectionRegistry = Depends(get_registry),
    event_dispatcher: EventDispatcher = Depends(get_event_dispatcher),
):
    return ModerationInteractor(
        uow, group_gateway, membership, notifications, registry, event_dispatcher
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
) -> schemas.User:
    user_id = security_service.decode_access_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_model = await user_gateway.get_user(user_id)
    if user_model is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return schemas.User.model_validate(user_model._model)


async def get_current_active_user(
    current_user: schemas.User = Depends(get_current_user),
) -> schemas.User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
