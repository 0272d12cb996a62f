"""Redis side of the randomness round trip.

Requests are queued for the oracle, which later calls back /resolve-hack with
the session address as correlation key. Resolutions are announced on a
per-session channel.
"""

import json
import logging

from redis.asyncio import Redis

from hack_resolver.load_secrets import redis_host, redis_port
from hack_resolver.models.schema_models import RandomnessRequestSchema

NONCE_KEY = "chain:hack_nonce"
ORACLE_QUEUE = "vrf:request_queue"
RESOLVE_CALLBACK = "/resolve-hack"

redis = Redis(host=redis_host, port=redis_port, decode_responses=True, health_check_interval=30)


def resolution_channel(session_address: str) -> str:
    return f"hack:{session_address}"


async def next_hack_nonce() -> int:
    """Allocate a fresh hack nonce from the shared counter."""
    return int(await redis.incr(NONCE_KEY))


async def publish_randomness_request(request: RandomnessRequestSchema) -> None:
    """Queue a randomness request for the oracle

    Args:
        request (RandomnessRequestSchema): stored request, its caller seed byte
            is repeated to the 32-byte caller seed the oracle mixes in
    """
    payload = json.dumps(
        {
            "request_id": str(request.request_id),
            "requester": request.requester,
            "session_address": request.session_address,
            "caller_seed": bytes([request.caller_seed] * 32).hex(),
            "callback": RESOLVE_CALLBACK,
        }
    )
    await redis.rpush(ORACLE_QUEUE, payload)
    logging.debug(f"Queued randomness request: {payload}")


async def publish_resolution(session_address: str) -> None:
    await redis.publish(resolution_channel(session_address), session_address)
