from pydantic import BaseModel, Field, field_validator
from enum import Enum
from uuid import UUID
from datetime import datetime

from hack_resolver.domain.hack_rules import (
    PLAYER_KEY_LENGTH,
    RANDOMNESS_LENGTH,
    U16_MAX,
    U64_MAX,
    U8_MAX,
)


def _check_hex_key(value: str, length: int, name: str) -> str:
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        raise ValueError(f"{name} must be hex encoded") from e
    if len(raw) != length:
        raise ValueError(f"{name} must be {length} bytes")
    return raw.hex()


class ExecutionContextModel(str, Enum):
    base_layer = "base_layer"  # where sessions are created
    ephemeral_rollup = "ephemeral_rollup"  # faster context sessions are delegated to


class HackStatusModel(str, Enum):
    pending = "pending"
    resolved = "resolved"


class InitiateHackModel(BaseModel):
    """Parameters of a hack attempt. The nonce is allocated by the server when omitted."""
    player_wallet: str
    hack_nonce: int | None = Field(default=None, ge=0, le=U64_MAX)
    hack_power: int = Field(ge=0, le=U16_MAX)
    stealth: int = Field(ge=0, le=U16_MAX)
    security_level: int = Field(ge=0, le=U16_MAX)
    detection_chance: int = Field(ge=0, le=U16_MAX)
    heat_level: int = Field(ge=0, le=U8_MAX)
    success_floor: int = Field(ge=0, le=U8_MAX)

    @field_validator("player_wallet")
    @classmethod
    def check_player_wallet(cls, value: str) -> str:
        return _check_hex_key(value, PLAYER_KEY_LENGTH, "player_wallet")


class SessionReferenceModel(BaseModel):
    session_address: str
    player_wallet: str

    @field_validator("player_wallet")
    @classmethod
    def check_player_wallet(cls, value: str) -> str:
        return _check_hex_key(value, PLAYER_KEY_LENGTH, "player_wallet")


class RequestRandomnessModel(SessionReferenceModel):
    caller_seed: int = Field(ge=0, le=U8_MAX)


class DelegateHackModel(SessionReferenceModel):
    target_context: ExecutionContextModel = ExecutionContextModel.ephemeral_rollup


class ResolveHackModel(BaseModel):
    session_address: str
    randomness: str  # 32 bytes, hex encoded

    @field_validator("randomness")
    @classmethod
    def check_randomness(cls, value: str) -> str:
        return _check_hex_key(value, RANDOMNESS_LENGTH, "randomness")

    @property
    def randomness_bytes(self) -> bytes:
        return bytes.fromhex(self.randomness)


class HackResultModel(BaseModel):
    session_address: str
    success: bool
    detected: bool
    success_roll: int
    success_chance: int
    detection_roll: int
    effective_detection: int
    damage_seed: str


class HackSessionModel(BaseModel):
    session_address: str
    player_wallet: str
    hack_nonce: int
    hack_power: int
    stealth: int
    security_level: int
    detection_chance: int
    heat_level: int
    success_floor: int
    status: HackStatusModel
    owner_context: ExecutionContextModel
    created_at: datetime
    resolved_at: datetime | None = None
    result: HackResultModel | None = None


class RandomnessRequestModel(BaseModel):
    request_id: UUID
    session_address: str
    caller_seed: int
    requested_at: datetime


class DelegationModel(BaseModel):
    session_address: str
    source_context: ExecutionContextModel
    target_context: ExecutionContextModel
    snapshot: str
    delegated_at: datetime | None = None  # None when no relocation happened


class HackAuditModel(BaseModel):
    """Randomness requests and relocations recorded for one session, oldest first."""
    session_address: str
    randomness_requests: list[RandomnessRequestModel]
    delegations: list[DelegationModel]
