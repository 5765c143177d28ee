# social_service/realtime/services.py
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from social_service.config import AppConfig
from social_service.gateways.group_gateway import GroupGateway
from social_service.gateways.group_message_gateway import GroupMessageGateway
from social_service.gateways.message_gateway import DirectMessageGateway
from social_service.gateways.notification_gateway import NotificationGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure.database import Database
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork
from social_service.interactors.group_message_interactor import GroupMessageInteractor
from social_service.interactors.membership_interactor import MembershipResolver
from social_service.interactors.message_interactor import DirectMessageInteractor
from social_service.interactors.notification_interactor import NotificationInteractor
from social_service.interactors.user_interactor import UserInteractor
from social_service.realtime.registry import ConnectionRegistry


@dataclass
class Services:
    session: AsyncSession
    users: UserInteractor
    messages: DirectMessageInteractor
    group_messages: GroupMessageInteractor
    membership: MembershipResolver
    notifications: NotificationInteractor


class ServiceFactory:
    """Builds the interactors for one realtime event on a fresh session.

    A new session per event keeps permission checks on fresh reads.
    """

    def __init__(
        self,
        database: Database,
        config: AppConfig,
        security_service: SecurityService,
        registry: ConnectionRegistry,
        event_dispatcher: EventDispatcher | None = None,
    ):
        self.database = database
        self.config = config
        self.security_service = security_service
        self.registry = registry
        self.event_dispatcher = event_dispatcher

    def build(self, session: AsyncSession) -> Services:
        uow = UnitOfWork(session)
        user_gateway = UserGateway(session, uow)
        group_gateway = GroupGateway(session, uow)
        membership = MembershipResolver(uow, group_gateway)
        return Services(
            session=session,
            users=UserInteractor(self.security_service, user_gateway),
            messages=DirectMessageInteractor(
                uow,
                DirectMessageGateway(session, uow),
                user_gateway,
                self.event_dispatcher,
                max_length=self.config.MESSAGE_MAX_LENGTH,
            ),
            group_messages=GroupMessageInteractor(
                uow,
                GroupMessageGateway(session, uow),
                group_gateway,
                membership,
                self.event_dispatcher,
                max_length=self.config.MESSAGE_MAX_LENGTH,
                page_size=self.config.GROUP_MESSAGE_PAGE_SIZE,
            ),
            membership=membership,
            notifications=NotificationInteractor(
                uow,
                NotificationGateway(session, uow),
                self.registry,
                self.event_dispatcher,
                page_size=self.config.NOTIFICATION_PAGE_SIZE,
            ),
        )

    @asynccontextmanager
    async def open(self) -> AsyncIterator[Services]:
        async with self.database.session() as session:
            try:
                yield self.build(session)
            except Exception:
                await session.rollback()
                raise
