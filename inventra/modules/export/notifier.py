"""Best-effort export status broadcasts over Redis pub/sub."""

from __future__ import annotations

import abc
import logging
import uuid
from collections.abc import AsyncIterator

import redis.asyncio as redis
from redis.exceptions import RedisError

from inventra.config import settings
from inventra.modules.export.schemas import ExportStatusUpdate

logger = logging.getLogger(__name__)


def status_channel(job_id: uuid.UUID | str) -> str:
    """Pub/sub channel name carrying updates for one job."""
    return f"{settings.export_status_channel_prefix}:{job_id}"


class StatusNotifier(abc.ABC):
    @abc.abstractmethod
    async def publish(self, update: ExportStatusUpdate) -> None:
        """Broadcast ``update``. Must never raise."""


class RedisStatusNotifier(StatusNotifier):
    """Publishes JSON status updates to ``export-status:{job_id}``.

    Delivery is fire-and-forget: subscribers that are not listening miss
    the message and must reconcile against the job status endpoint.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    async def publish(self, update: ExportStatusUpdate) -> None:
        channel = status_channel(update.job_id)
        try:
            client = await self._get_redis()
            receivers = await client.publish(
                channel, update.model_dump_json(by_alias=True)
            )
        except (RedisError, OSError):
            logger.warning(
                "Could not publish %s status for export job %s",
                update.status.value,
                update.job_id,
                exc_info=True,
            )
            return
        logger.debug("Published %s to %s (%d receivers)", update.status.value, channel, receivers)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


class StatusSubscription:
    """Async context manager listening on one job's status channel.

    Subscribe before reading the job's current status so no transition
    between the read and the subscription is missed.
    """

    def __init__(
        self,
        job_id: uuid.UUID,
        redis_client: redis.Redis | None = None,
        poll_timeout: float = 1.0,
    ) -> None:
        self.job_id = job_id
        self.poll_timeout = poll_timeout
        self._redis = redis_client
        self._owns_client = redis_client is None
        self._pubsub = None

    async def __aenter__(self) -> StatusSubscription:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        self._pubsub = self._redis.pubsub()
        try:
            await self._pubsub.subscribe(status_channel(self.job_id))
        except Exception:
            await self._release()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(status_channel(self.job_id))
        await self._release()

    async def _release(self) -> None:
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self._owns_client and self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def updates(self) -> AsyncIterator[ExportStatusUpdate]:
        """Yield updates until a terminal status has been yielded."""
        while True:
            message = await self._pubsub.get_message(
                ignore_subscribe_messages=True, timeout=self.poll_timeout
            )
            if message is None or message.get("type") != "message":
                continue
            try:
                update = ExportStatusUpdate.model_validate_json(message["data"])
            except ValueError:
                logger.warning("Ignoring malformed status message on %s", message.get("channel"))
                continue
            yield update
            if update.status.is_terminal:
                return
