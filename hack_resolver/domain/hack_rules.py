"""Hack rules that are independent from HTTP, DB and Redis.

Outcome derivation consumes 32 bytes of verifiable randomness together with
the parameters stored at initiation. The same parameters and the same bytes
always produce the same outcome, so any resolution can be audited later.

Rule of thumb:
- OK: arithmetic, validation, address derivation, byte slicing.
- Not OK: touching DB sessions, Redis, FastAPI, datetime.now(), etc.
"""

import hashlib
from dataclasses import dataclass
from enum import IntEnum

HACK_SEED = b"hack"
RANDOMNESS_LENGTH = 32
PLAYER_KEY_LENGTH = 32
DAMAGE_SEED_LENGTH = 8

# Mirrors the scanner balance base chance.
BASE_CHANCE = 58
SUCCESS_CHANCE_CEILING = 95
SUCCESS_FLOOR_MIN = 20
SUCCESS_FLOOR_MAX = 95
DETECTION_MIN = 5
DETECTION_MAX = 95

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF


class HackStatus(IntEnum):
    PENDING = 0
    RESOLVED = 1


@dataclass(frozen=True)
class HackParams:
    """Immutable parameters fixed when the session is initiated."""

    hack_power: int
    stealth: int
    security_level: int
    detection_chance: int
    heat_level: int
    success_floor: int


@dataclass(frozen=True)
class HackOutcome:
    success: bool
    detected: bool
    success_roll: int
    success_chance: int
    detection_roll: int
    effective_detection: int
    damage_seed: bytes


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp value into [lower, upper], both bounds inclusive."""
    return max(lower, min(upper, value))


def validate_hack_params(params: HackParams) -> None:
    """Check the preconditions of Initiate.

    Raises:
        ValueError: security_level is zero or success_floor is outside [20, 95]
    """
    if params.security_level <= 0:
        raise ValueError("security_level must be greater than 0")
    if not SUCCESS_FLOOR_MIN <= params.success_floor <= SUCCESS_FLOOR_MAX:
        raise ValueError(
            f"success_floor must be between {SUCCESS_FLOOR_MIN} and {SUCCESS_FLOOR_MAX}"
        )


def derive_session_address(player_wallet: bytes, hack_nonce: int) -> str:
    """Derive the record handle for (player, nonce).

    Args:
        player_wallet (bytes): 32-byte player key
        hack_nonce (int): unsigned 64-bit nonce

    Returns:
        str: hex digest of sha256("hack" || player || nonce_le)
    """
    if len(player_wallet) != PLAYER_KEY_LENGTH:
        raise ValueError("player_wallet must be 32 bytes")
    nonce_bytes = hack_nonce.to_bytes(8, "little")
    return hashlib.sha256(HACK_SEED + player_wallet + nonce_bytes).hexdigest()


def roll_percent(randomness: bytes, offset: int) -> int:
    """Read a little-endian u16 at offset and reduce it to [1, 100].

    A 16-bit word keeps the modulo bias under 1% (65536 mod 100 = 36).
    """
    word = int.from_bytes(randomness[offset:offset + 2], "little")
    return word % 100 + 1


def success_chance(params: HackParams) -> int:
    raw = BASE_CHANCE + params.hack_power - params.security_level
    return clamp(raw, params.success_floor, SUCCESS_CHANCE_CEILING)


def effective_detection(params: HackParams) -> int:
    raw = params.detection_chance - params.stealth // 2
    return clamp(raw, DETECTION_MIN, DETECTION_MAX)


def resolve_outcome(randomness: bytes, params: HackParams) -> HackOutcome:
    """Derive the hack outcome from verifiable randomness.

    Args:
        randomness (bytes): 32 bytes delivered by the randomness authority
        params (HackParams): parameters stored at initiation

    Returns:
        HackOutcome: rolls, chances, success/detected flags and damage seed
    """
    if len(randomness) != RANDOMNESS_LENGTH:
        raise ValueError("randomness must be exactly 32 bytes")

    success_roll = roll_percent(randomness, 0)
    detection_roll = roll_percent(randomness, 2)

    chance = success_chance(params)
    success = success_roll <= chance

    # Detection only matters when the hack fails, but is always recorded.
    detection = effective_detection(params)
    detected = not success and detection_roll <= detection

    return HackOutcome(
        success=success,
        detected=detected,
        success_roll=success_roll,
        success_chance=chance,
        detection_roll=detection_roll,
        effective_detection=detection,
        damage_seed=bytes(randomness[8:8 + DAMAGE_SEED_LENGTH]),
    )


def derive_from_seed(seed: bytes, minimum: int, maximum: int, offset: int) -> int:
    """Derive a deterministic integer in [minimum, maximum] from a damage seed.

    Anyone holding the seed can reproduce the value. Two bytes are combined
    to reduce modulo bias.
    """
    if len(seed) < 2:
        raise ValueError("seed must hold at least 2 bytes")
    if maximum < minimum:
        raise ValueError("maximum must not be lower than minimum")
    value_range = maximum - minimum + 1
    idx = offset % (len(seed) - 1)
    raw = (seed[idx] << 8) | seed[(idx + 1) % len(seed)]
    return minimum + raw % value_range
