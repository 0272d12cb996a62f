import logging
from typing import AsyncGenerator
from redis.asyncio import Redis

from hack_resolver.converter import DataConverter
from hack_resolver.domain.errors import SessionNotFound
from hack_resolver.models.schema_models import HackSessionSchema
from hack_resolver.services import hack_db

data_converter = DataConverter()


class ResolutionSubscriber:
    """Redis subscriber class to stream the resolution of one hack session as SSE."""

    def __init__(self, session_address: str):
        self.session_address: str = session_address

    async def _read(self) -> HackSessionSchema:
        hack_session = await hack_db.read_hack_session(self.session_address)
        if hack_session is None:
            raise SessionNotFound()
        return hack_session

    def _format(self, event: str, hack_session: HackSessionSchema) -> str:
        model = data_converter.convert_hacksessionschema_to_hacksessionmodel(hack_session)
        payload = model.model_dump_json()
        logging.debug(f"Payload: {payload}")
        return f"event: {event}\ndata: {payload}\n\n"

    async def event_generator(self, channel: str, redis: Redis) -> AsyncGenerator[str, None]:
        """Event generator to handle SSE events.

        The current record is sent first as hack_state. The stream ends with a
        single hack_resolved event, immediately when the session is already
        resolved, otherwise once a resolution is published on the channel.

        Args:
            channel (str): Resolution channel of the session
            redis (Redis): Redis connection object.
        """
        hack_session = await self._read()
        yield self._format("hack_state", hack_session)
        if not hack_session.is_pending:
            yield self._format("hack_resolved", hack_session)
            return

        pubsub = redis.pubsub()
        await pubsub.subscribe(channel)
        try:
            # resolution may have landed between the first read and subscribe
            hack_session = await self._read()
            while hack_session.is_pending:
                msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=None)
                if msg and msg["type"] == "message":
                    hack_session = await self._read()
            yield self._format("hack_resolved", hack_session)
        finally:
            logging.info(f"Unsubscribing from channel {channel}")
            await pubsub.unsubscribe(channel)
            await pubsub.close()
