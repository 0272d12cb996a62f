"""Hack session lifecycle: Pending -> Resolved.

Each operation checks the caller capability first, then delegates storage to
hack_db and messaging to oracle. Errors are raised before anything is written.
"""

import logging

from redis.exceptions import RedisError

from hack_resolver.authentication.authorization_gate import AuthorizationGate
from hack_resolver.domain.errors import AlreadyResolved, InvalidParams, NotResolved, SessionNotFound
from hack_resolver.domain.hack_rules import HackParams, derive_session_address, validate_hack_params
from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.models.dc_models import (
    DelegateHackModel,
    InitiateHackModel,
    RequestRandomnessModel,
    ResolveHackModel,
)
from hack_resolver.models.schema_models import (
    HackDelegationSchema,
    HackSessionSchema,
    RandomnessRequestSchema,
)
from hack_resolver.services import hack_db, oracle

authorization_gate = AuthorizationGate()


async def _read_owned_session(user_data: UserModel, session_address: str, player_wallet: str) -> HackSessionSchema:
    authorization_gate.require_player_capability(user_data, player_wallet)
    hack_session = await hack_db.read_hack_session(session_address)
    if hack_session is None:
        raise SessionNotFound()
    authorization_gate.require_player_capability(user_data, player_wallet, hack_session)
    return hack_session


async def initiate(user_data: UserModel, request: InitiateHackModel) -> HackSessionSchema:
    """Create a pending hack session

    Raises:
        UnauthorizedPlayer: caller is the randomness authority
        InvalidParams: security_level is zero or success_floor outside [20, 95]
        DuplicateSession: (player, nonce) is already taken
    """
    authorization_gate.require_player_capability(user_data, request.player_wallet)
    params = HackParams(
        hack_power=request.hack_power,
        stealth=request.stealth,
        security_level=request.security_level,
        detection_chance=request.detection_chance,
        heat_level=request.heat_level,
        success_floor=request.success_floor,
    )
    try:
        validate_hack_params(params)
    except ValueError as e:
        raise InvalidParams(str(e)) from e

    hack_nonce = request.hack_nonce
    if hack_nonce is None:
        hack_nonce = await oracle.next_hack_nonce()
    session_address = derive_session_address(bytes.fromhex(request.player_wallet), hack_nonce)

    hack_session = await hack_db.create_hack_session(
        session_address, request.player_wallet, hack_nonce, params
    )
    logging.info(
        f"Hack initiated: player={request.player_wallet}, nonce={hack_nonce}, "
        f"power={params.hack_power}, sec={params.security_level}"
    )
    return hack_session


async def request_randomness(
    user_data: UserModel, request: RequestRandomnessModel
) -> RandomnessRequestSchema:
    """Ask the oracle for randomness on behalf of a pending session

    Raises:
        UnauthorizedPlayer: caller lacks the player capability for this session
        SessionNotFound: unknown session address
        AlreadyResolved: the session is no longer pending
    """
    hack_session = await _read_owned_session(user_data, request.session_address, request.player_wallet)
    if not hack_session.is_pending:
        raise AlreadyResolved()

    randomness_request = await hack_db.record_randomness_request(
        request.session_address, user_data.username, request.caller_seed
    )
    await oracle.publish_randomness_request(randomness_request)
    logging.info(f"Randomness requested for hack session {request.session_address}")
    return randomness_request


async def resolve(user_data: UserModel, request: ResolveHackModel) -> HackSessionSchema:
    """Oracle callback: derive and commit the outcome exactly once

    Raises:
        UnauthorizedCallback: caller is not the randomness authority
        SessionNotFound: unknown session address
        AlreadyResolved: the session was resolved before
    """
    authorization_gate.require_randomness_authority(user_data)
    hack_session = await hack_db.apply_resolution(request.session_address, request.randomness_bytes)
    logging.info(
        f"Hack resolved: success={hack_session.success}, "
        f"roll={hack_session.success_roll}/{hack_session.success_chance}, "
        f"detected={hack_session.detected}"
    )
    try:
        await oracle.publish_resolution(request.session_address)
    except RedisError as e:
        # the resolution is committed, subscribers fall back to polling
        logging.error(f"Failed to publish resolution of {request.session_address}: {e}")
    return hack_session


async def delegate(
    user_data: UserModel, request: DelegateHackModel
) -> tuple[HackSessionSchema, HackDelegationSchema | None]:
    """Hand the record to another execution context without a state transition

    Raises:
        UnauthorizedPlayer: caller lacks the player capability for this session
        SessionNotFound: unknown session address
    """
    await _read_owned_session(user_data, request.session_address, request.player_wallet)
    hack_session, delegation = await hack_db.relocate_hack_session(
        request.session_address, request.target_context.value
    )
    if delegation is None:
        logging.info(f"Hack session {request.session_address} already owned by {request.target_context.value}")
    else:
        logging.info(
            f"Hack session {request.session_address} delegated "
            f"from {delegation.source_context} to {delegation.target_context}"
        )
    return hack_session, delegation


async def read_result(session_address: str, wait: bool = False) -> HackSessionSchema:
    """Read a resolved session

    Args:
        session_address (str): To identify the hack session
        wait (bool): poll until resolved instead of failing on a pending session

    Raises:
        SessionNotFound: unknown session address
        NotResolved: the session is pending and wait is False
        TimeoutError: still pending when polling gave up
    """
    if wait:
        return await hack_db.wait_for_resolution(session_address)
    hack_session = await hack_db.read_hack_session(session_address)
    if hack_session is None:
        raise SessionNotFound()
    if hack_session.is_pending:
        raise NotResolved()
    return hack_session


async def read_audit(
    session_address: str,
) -> tuple[list[RandomnessRequestSchema], list[HackDelegationSchema]]:
    """Read the randomness requests and relocations recorded for a session

    Raises:
        SessionNotFound: unknown session address
    """
    if await hack_db.read_hack_session(session_address) is None:
        raise SessionNotFound()
    randomness_requests = await hack_db.read_randomness_requests(session_address)
    delegations = await hack_db.read_delegations(session_address)
    return randomness_requests, delegations
