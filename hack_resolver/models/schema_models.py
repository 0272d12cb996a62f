from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

from hack_resolver.domain.hack_rules import HackOutcome, HackParams, HackStatus
from hack_resolver.domain.session_layout import pack_hack_session


class HackSessionSchema(BaseModel):
    session_address: str
    player_wallet: str
    hack_nonce: int
    hack_power: int
    stealth: int
    security_level: int
    detection_chance: int
    heat_level: int
    success_floor: int
    status: int
    success: bool
    detected: bool
    success_roll: int
    success_chance: int
    detection_roll: int
    effective_detection: int
    damage_seed: bytes
    owner_context: str
    created_at: datetime
    resolved_at: datetime | None = None

    class Config:
        from_attributes = True

    @property
    def is_pending(self) -> bool:
        return self.status == HackStatus.PENDING

    def params(self) -> HackParams:
        return HackParams(
            hack_power=self.hack_power,
            stealth=self.stealth,
            security_level=self.security_level,
            detection_chance=self.detection_chance,
            heat_level=self.heat_level,
            success_floor=self.success_floor,
        )

    def outcome(self) -> HackOutcome:
        return HackOutcome(
            success=self.success,
            detected=self.detected,
            success_roll=self.success_roll,
            success_chance=self.success_chance,
            detection_roll=self.detection_roll,
            effective_detection=self.effective_detection,
            damage_seed=self.damage_seed,
        )

    def snapshot(self) -> bytes:
        """Pack the logical content, leaving out the owning context and timestamps."""
        return pack_hack_session(
            bytes.fromhex(self.player_wallet),
            self.hack_nonce,
            self.params(),
            HackStatus(self.status),
            self.outcome(),
        )


class RandomnessRequestSchema(BaseModel):
    request_id: UUID
    session_address: str
    requester: str
    caller_seed: int
    requested_at: datetime

    class Config:
        from_attributes = True


class HackDelegationSchema(BaseModel):
    delegation_id: UUID
    session_address: str
    source_context: str
    target_context: str
    snapshot: bytes
    delegated_at: datetime

    class Config:
        from_attributes = True
