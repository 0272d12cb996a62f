from hack_resolver.domain.hack_rules import HackStatus
from hack_resolver.models.dc_models import (
    DelegationModel,
    HackAuditModel,
    HackResultModel,
    HackSessionModel,
    HackStatusModel,
    RandomnessRequestModel,
)
from hack_resolver.models.schema_models import (
    HackDelegationSchema,
    HackSessionSchema,
    RandomnessRequestSchema,
)


class DataConverter:
    """This class is used to convert data between different formats."""

    def convert_hacksessionschema_to_hackresultmodel(self, hack_session: HackSessionSchema) -> HackResultModel:
        """Convert the outcome fields of a resolved session to send client

        Args:
            hack_session (HackSessionSchema): Resolved hack session

        Returns:
            HackResultModel: Outcome of the hack, damage seed hex encoded
        """
        return HackResultModel(
            session_address=hack_session.session_address,
            success=hack_session.success,
            detected=hack_session.detected,
            success_roll=hack_session.success_roll,
            success_chance=hack_session.success_chance,
            detection_roll=hack_session.detection_roll,
            effective_detection=hack_session.effective_detection,
            damage_seed=hack_session.damage_seed.hex(),
        )

    def convert_hacksessionschema_to_hacksessionmodel(self, hack_session: HackSessionSchema) -> HackSessionModel:
        """Convert the HackSessionSchema to the HackSessionModel to send client.
        The result is only attached once the session is resolved.
        """
        result = None
        if not hack_session.is_pending:
            result = self.convert_hacksessionschema_to_hackresultmodel(hack_session)

        status = (
            HackStatusModel.pending
            if hack_session.status == HackStatus.PENDING
            else HackStatusModel.resolved
        )
        return HackSessionModel(
            session_address=hack_session.session_address,
            player_wallet=hack_session.player_wallet,
            hack_nonce=hack_session.hack_nonce,
            hack_power=hack_session.hack_power,
            stealth=hack_session.stealth,
            security_level=hack_session.security_level,
            detection_chance=hack_session.detection_chance,
            heat_level=hack_session.heat_level,
            success_floor=hack_session.success_floor,
            status=status,
            owner_context=hack_session.owner_context,
            created_at=hack_session.created_at,
            resolved_at=hack_session.resolved_at,
            result=result,
        )

    def convert_randomnessrequestschema_to_randomnessrequestmodel(
        self, randomness_request: RandomnessRequestSchema
    ) -> RandomnessRequestModel:
        return RandomnessRequestModel(
            request_id=randomness_request.request_id,
            session_address=randomness_request.session_address,
            caller_seed=randomness_request.caller_seed,
            requested_at=randomness_request.requested_at,
        )

    def convert_delegation_to_delegationmodel(
        self, hack_session: HackSessionSchema | None, delegation: HackDelegationSchema | None
    ) -> DelegationModel:
        """Convert a delegation receipt to send client

        Args:
            hack_session (HackSessionSchema): The record after relocation
            delegation (HackDelegationSchema | None): Receipt, None when the
                target context already owned the record

        Returns:
            DelegationModel: Source and target context with the packed record
        """
        if delegation is None:
            return DelegationModel(
                session_address=hack_session.session_address,
                source_context=hack_session.owner_context,
                target_context=hack_session.owner_context,
                snapshot=hack_session.snapshot().hex(),
            )
        return DelegationModel(
            session_address=delegation.session_address,
            source_context=delegation.source_context,
            target_context=delegation.target_context,
            snapshot=delegation.snapshot.hex(),
            delegated_at=delegation.delegated_at,
        )

    def convert_audit_to_hackauditmodel(
        self,
        session_address: str,
        randomness_requests: list[RandomnessRequestSchema],
        delegations: list[HackDelegationSchema],
    ) -> HackAuditModel:
        return HackAuditModel(
            session_address=session_address,
            randomness_requests=[
                self.convert_randomnessrequestschema_to_randomnessrequestmodel(request)
                for request in randomness_requests
            ],
            delegations=[
                self.convert_delegation_to_delegationmodel(None, delegation)
                for delegation in delegations
            ],
        )
