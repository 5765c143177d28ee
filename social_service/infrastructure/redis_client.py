# social_service/infrastructure/redis_client.py
import logging

import redis.asyncio as redis


class RedisClient:
    def __init__(
        self, host: str, port: int, logger: logging.Logger, namespace: str = "social"
    ):
        self.host = host
        self.port = port
        self.namespace = namespace
        self.client: redis.Redis | None = None
        self.logger = logger

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    def channel(self, name: str) -> str:
        return f"{self.namespace}:{name}" if self.namespace else name

    async def connect(self):
        self.client = redis.Redis(
            host=self.host,
            port=self.port,
            db=0,
            decode_responses=True,
        )
        try:
            await self.client.ping()
            self.logger.info(
                f"Successfully connected to Redis at {self.host}:{self.port}"
            )
        except redis.ConnectionError as e:
            self.logger.error(f"Failed to connect to Redis: {e!s}")
            self.logger.error(f"Redis host: {self.host}, Redis port: {self.port}")
            raise e

    async def disconnect(self):
        if self.is_connected:
            await self.client.aclose()
            self.client = None
            self.logger.info("Disconnected from Redis")

    async def publish(self, channel: str, message: str) -> None:
        if not self.is_connected:
            raise RuntimeError("Redis client not connected")
        full_channel = self.channel(channel)
        await self.client.publish(full_channel, message)
        self.logger.debug(f"Published message to channel {full_channel}")
