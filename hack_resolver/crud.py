from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from datetime import datetime
from uuid6 import uuid7
import logging

from hack_resolver.domain.hack_rules import HackOutcome, HackParams, HackStatus
from hack_resolver.models.schema_models import (
    HackDelegationSchema,
    HackSessionSchema,
    RandomnessRequestSchema,
)
from hack_resolver.models.schemas import HackDelegation, HackSession, RandomnessRequest

# Helpers below never commit; the service layer owns transaction boundaries.


class CreateData:
    @staticmethod
    async def add_hack_session(
        session_address: str,
        player_wallet: str,
        hack_nonce: int,
        params: HackParams,
        session: AsyncSession,
    ) -> None:
        """Add a pending hack session with every outcome field zeroed

        Args:
            session_address (str): Record handle derived from player and nonce
            player_wallet (str): Player identity (hex)
            hack_nonce (int): Nonce unique per player
            params (HackParams): Immutable hack parameters
            session (AsyncSession): AsyncSession object to interact with database
        """
        new_hack_session = HackSession(
            session_address=session_address,
            player_wallet=player_wallet,
            hack_nonce=str(hack_nonce),
            hack_power=params.hack_power,
            stealth=params.stealth,
            security_level=params.security_level,
            detection_chance=params.detection_chance,
            heat_level=params.heat_level,
            success_floor=params.success_floor,
            status=int(HackStatus.PENDING),
            success=False,
            detected=False,
            success_roll=0,
            success_chance=0,
            detection_roll=0,
            effective_detection=0,
            damage_seed=bytes(8),
            owner_context="base_layer",
            created_at=datetime.now(),
        )
        session.add(new_hack_session)
        await session.flush()

    @staticmethod
    async def add_randomness_request(
        session_address: str, requester: str, caller_seed: int, session: AsyncSession
    ) -> RandomnessRequestSchema:
        """Add the audit row of a randomness request

        Args:
            session_address (str): Session the oracle will call back for
            requester (str): Username of the caller
            caller_seed (int): Caller supplied seed byte
        """
        new_request = RandomnessRequest(
            request_id=uuid7(),
            session_address=session_address,
            requester=requester,
            caller_seed=caller_seed,
            requested_at=datetime.now(),
        )
        session.add(new_request)
        await session.flush()
        return RandomnessRequestSchema.model_validate(new_request)

    @staticmethod
    async def add_delegation(
        session_address: str,
        source_context: str,
        target_context: str,
        snapshot: bytes,
        session: AsyncSession,
    ) -> HackDelegationSchema:
        new_delegation = HackDelegation(
            delegation_id=uuid7(),
            session_address=session_address,
            source_context=source_context,
            target_context=target_context,
            snapshot=snapshot,
            delegated_at=datetime.now(),
        )
        session.add(new_delegation)
        await session.flush()
        return HackDelegationSchema.model_validate(new_delegation)


class ReadData:
    @staticmethod
    async def read_hack_session(session_address: str, session: AsyncSession) -> HackSessionSchema | None:
        """Read hack session data from database

        Args:
            session_address (str): To identify the hack session

        Returns:
            HackSessionSchema: Parameters and outcome of the hack session
        """
        stmt = (
            select(HackSession)
            .where(HackSession.session_address == session_address)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        result = result.scalars().first()

        if result is None:
            return None

        return HackSessionSchema.model_validate(result)

    @staticmethod
    async def read_hack_session_for_update(session_address: str, session: AsyncSession) -> HackSession | None:
        """Lock the hack session row until the surrounding transaction ends

        Args:
            session_address (str): To identify the hack session

        Returns:
            HackSession: Locked row
        """
        stmt = (
            select(HackSession)
            .where(HackSession.session_address == session_address)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def read_delegations(session_address: str, session: AsyncSession) -> list[HackDelegationSchema]:
        stmt = (
            select(HackDelegation)
            .where(HackDelegation.session_address == session_address)
            .order_by(HackDelegation.delegated_at)
        )
        result = await session.execute(stmt)
        return [HackDelegationSchema.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def read_randomness_requests(session_address: str, session: AsyncSession) -> list[RandomnessRequestSchema]:
        stmt = (
            select(RandomnessRequest)
            .where(RandomnessRequest.session_address == session_address)
            .order_by(RandomnessRequest.requested_at)
        )
        result = await session.execute(stmt)
        return [RandomnessRequestSchema.model_validate(row) for row in result.scalars().all()]


class UpdateData:
    @staticmethod
    async def set_resolution_no_commit(
        session_address: str, outcome: HackOutcome, session: AsyncSession
    ) -> bool:
        """Write the outcome and flip status to resolved in one statement

        The update only matches a pending row, so a second resolution
        matches nothing even when it read the row before the first committed.

        Args:
            session_address (str): To identify the hack session
            outcome (HackOutcome): Derived outcome

        Returns:
            bool: True if this call applied the resolution
        """
        stmt = (
            update(HackSession)
            .where(
                HackSession.session_address == session_address,
                HackSession.status == int(HackStatus.PENDING),
            )
            .values(
                status=int(HackStatus.RESOLVED),
                success=outcome.success,
                detected=outcome.detected,
                success_roll=outcome.success_roll,
                success_chance=outcome.success_chance,
                detection_roll=outcome.detection_roll,
                effective_detection=outcome.effective_detection,
                damage_seed=outcome.damage_seed,
                resolved_at=datetime.now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount != 1:
            logging.info(f"Resolution not applied, session {session_address} is not pending")
            return False
        return True

    @staticmethod
    async def set_owner_context_no_commit(row: HackSession, target_context: str, session: AsyncSession) -> None:
        row.owner_context = target_context
        await session.flush()
