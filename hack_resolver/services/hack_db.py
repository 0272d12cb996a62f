"""DB service layer for hack session use cases.

- Routers should not touch DB sessions directly; they call this module.
- This layer owns session/transaction boundaries.
- Use CRUD helpers that do NOT commit inside session.begin().
"""

import asyncio

from sqlalchemy.exc import IntegrityError

from hack_resolver.crud import CreateData, ReadData, UpdateData
from hack_resolver.db import Session
from hack_resolver.domain.errors import AlreadyResolved, DuplicateSession, SessionNotFound
from hack_resolver.domain.hack_rules import HackParams, resolve_outcome
from hack_resolver.session_lock_manager import session_lock_manager
from hack_resolver.models.schema_models import (
    HackDelegationSchema,
    HackSessionSchema,
    RandomnessRequestSchema,
)

POLL_INTERVAL = 0.2
POLL_TIMEOUT = 10.0


async def read_hack_session(session_address: str) -> HackSessionSchema | None:
    async with Session() as session:
        return await ReadData.read_hack_session(session_address, session)


async def read_delegations(session_address: str) -> list[HackDelegationSchema]:
    async with Session() as session:
        return await ReadData.read_delegations(session_address, session)


async def read_randomness_requests(session_address: str) -> list[RandomnessRequestSchema]:
    async with Session() as session:
        return await ReadData.read_randomness_requests(session_address, session)


async def create_hack_session(
    session_address: str,
    player_wallet: str,
    hack_nonce: int,
    params: HackParams,
) -> HackSessionSchema:
    """Insert a pending hack session.

    Raises:
        DuplicateSession: a record already exists for (player, nonce)
    """
    async with Session() as session:
        try:
            async with session.begin():
                await CreateData.add_hack_session(
                    session_address, player_wallet, hack_nonce, params, session
                )
        except IntegrityError as e:
            raise DuplicateSession() from e
        return await ReadData.read_hack_session(session_address, session)


async def record_randomness_request(
    session_address: str, requester: str, caller_seed: int
) -> RandomnessRequestSchema:
    """Store a randomness request for a pending session. Status is left untouched.

    Raises:
        SessionNotFound: no record for session_address
        AlreadyResolved: the session is no longer pending
    """
    async with session_lock_manager.hold(session_address), Session() as session:
        async with session.begin():
            row = await ReadData.read_hack_session_for_update(session_address, session)
            if row is None:
                raise SessionNotFound()
            if not HackSessionSchema.model_validate(row).is_pending:
                raise AlreadyResolved()
            return await CreateData.add_randomness_request(
                session_address, requester, caller_seed, session
            )


async def apply_resolution(session_address: str, randomness: bytes) -> HackSessionSchema:
    """Resolve a pending session with verifiable randomness.

    Status check, outcome derivation and the write happen under the
    in-process session lock and in one transaction on a locked row. The write
    itself only matches a pending row, so across processes too exactly one
    of several racing resolutions is applied.

    Raises:
        SessionNotFound: no record for session_address
        AlreadyResolved: the session is no longer pending
    """
    async with session_lock_manager.hold(session_address), Session() as session:
        async with session.begin():
            row = await ReadData.read_hack_session_for_update(session_address, session)
            if row is None:
                raise SessionNotFound()
            current = HackSessionSchema.model_validate(row)
            if not current.is_pending:
                raise AlreadyResolved()

            outcome = resolve_outcome(randomness, current.params())
            applied = await UpdateData.set_resolution_no_commit(session_address, outcome, session)
            if not applied:
                raise AlreadyResolved()
            return await ReadData.read_hack_session(session_address, session)


async def relocate_hack_session(
    session_address: str, target_context: str
) -> tuple[HackSessionSchema, HackDelegationSchema | None]:
    """Hand ownership of the record to target_context, content untouched.

    Returns:
        tuple: the record after relocation and the delegation receipt,
               None when target_context already owns the record
    Raises:
        SessionNotFound: no record for session_address
    """
    async with session_lock_manager.hold(session_address), Session() as session:
        async with session.begin():
            row = await ReadData.read_hack_session_for_update(session_address, session)
            if row is None:
                raise SessionNotFound()
            current = HackSessionSchema.model_validate(row)
            if current.owner_context == target_context:
                return current, None

            delegation = await CreateData.add_delegation(
                session_address,
                current.owner_context,
                target_context,
                current.snapshot(),
                session,
            )
            await UpdateData.set_owner_context_no_commit(row, target_context, session)
            relocated = await ReadData.read_hack_session(session_address, session)
            return relocated, delegation


async def wait_for_resolution(
    session_address: str,
    timeout: float = POLL_TIMEOUT,
    interval: float = POLL_INTERVAL,
) -> HackSessionSchema:
    """Poll the record until it is resolved.

    Raises:
        SessionNotFound: no record for session_address
        TimeoutError: still pending after timeout seconds
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        hack_session = await read_hack_session(session_address)
        if hack_session is None:
            raise SessionNotFound()
        if not hack_session.is_pending:
            return hack_session
        if loop.time() >= deadline:
            raise TimeoutError(f"Hack session {session_address} poll timed out")
        await asyncio.sleep(interval)
