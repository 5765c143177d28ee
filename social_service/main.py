# social_service/main.py
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from social_service.api import auth, group_messages, groups, messages, notifications, users, ws
from social_service.config import AppConfig
from social_service.domain.errors import (
    AuthorizationError,
    ConflictError,
    DomainError,
    ModerationError,
    NotFoundError,
    ValidationFailure,
)
from social_service.infrastructure.database import build_engine, create_database
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.event_handlers import EventHandlers
from social_service.infrastructure.redis_client import RedisClient
from social_service.infrastructure.security import SecurityService
from social_service.realtime.engine import DispatchEngine
from social_service.realtime.registry import ConnectionRegistry
from social_service.realtime.services import ServiceFactory

ERROR_STATUS = [
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (ModerationError, 403),
    (ConflictError, 409),
    (ValidationFailure, 400),
]


class Application:
    def __init__(self, config: AppConfig):
        self.config = config
        self.logger = self.setup_logger()
        self.database = create_database(build_engine(config.DATABASE_URL))
        self.redis_client = RedisClient(
            config.REDIS_HOST, config.REDIS_PORT, self.logger
        )
        self.event_dispatcher = EventDispatcher(self.logger)
        self.security_service = SecurityService(config)
        self.event_handlers = EventHandlers(self.redis_client)
        self.event_handlers.register_all(self.event_dispatcher)
        self.registry = ConnectionRegistry()

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.database.connect()
        await self.redis_client.connect()
        yield
        await self.database.disconnect()
        await self.redis_client.disconnect()

    def setup_logger(self):
        logger = logging.getLogger("SocialAPI")
        logger.setLevel(self.config.LOG_LEVEL.upper())

        if not logger.handlers:
            c_handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            c_handler.setFormatter(formatter)
            logger.addHandler(c_handler)

        return logger

    def create_dispatch_engine(self) -> DispatchEngine:
        services = ServiceFactory(
            self.database,
            self.config,
            self.security_service,
            self.registry,
            self.event_dispatcher,
        )
        return DispatchEngine(self.registry, services, self.logger)

    def create_app(self) -> FastAPI:
        app = FastAPI(
            title=self.config.PROJECT_NAME,
            version=self.config.PROJECT_VERSION,
            description=self.config.PROJECT_DESCRIPTION,
            openapi_url=f"{self.config.API_V1_STR}/openapi.json",
            lifespan=self.lifespan,
        )

        app.state.config = self.config
        app.state.security_service = self.security_service
        app.state.event_dispatcher = self.event_dispatcher
        app.state.database = self.database
        app.state.logger = self.logger
        app.state.registry = self.registry
        app.state.dispatch_engine = self.create_dispatch_engine()

        prefix = self.config.API_V1_STR
        app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
        app.include_router(users.router, prefix=f"{prefix}/users", tags=["users"])
        app.include_router(
            messages.router, prefix=f"{prefix}/messages", tags=["messages"]
        )
        app.include_router(groups.router, prefix=f"{prefix}/groups", tags=["groups"])
        app.include_router(
            group_messages.router,
            prefix=f"{prefix}/group-messages",
            tags=["group-messages"],
        )
        app.include_router(
            notifications.router,
            prefix=f"{prefix}/notifications",
            tags=["notifications"],
        )
        app.include_router(ws.router, tags=["realtime"])

        @app.get("/")
        async def root():
            return {"message": "Welcome to the Social API"}

        @app.exception_handler(DomainError)
        async def domain_exception_handler(request: Request, exc: DomainError):
            status_code = next(
                (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
                400,
            )
            return JSONResponse(
                status_code=status_code,
                content={"detail": exc.message, "code": exc.code},
            )

        @app.exception_handler(Exception)
        async def global_exception_handler(request: Request, exc: Exception):
            self.logger.exception(f"Unhandled error on {request.url.path}")
            return JSONResponse(
                status_code=500,
                content={"message": f"An unexpected error occurred: {str(exc)}"},
            )

        return app


def create():
    config = AppConfig()
    application = Application(config)
    app = application.create_app()
    application.logger.info("Application created and configured")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create(), host="127.0.0.1", port=8000)
