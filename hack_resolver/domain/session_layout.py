"""Fixed binary layout of a hack session record.

The layout matches the account the record lives in when it is handed to
another execution context, so two snapshots compare equal exactly when the
logical content is identical.
"""

import hashlib
import struct

from hack_resolver.domain.hack_rules import HackOutcome, HackParams, HackStatus

DISCRIMINATOR = hashlib.sha256(b"account:HackSession").digest()[:8]

# discriminator, player, nonce, 4 x u16 stats, heat, floor, status,
# success, detected, 4 x u8 rolls/chances, damage seed
_LAYOUT = struct.Struct("<8s32sQ4H2B3B4B8s")

HACK_SESSION_LEN = _LAYOUT.size


def pack_hack_session(
    player_wallet: bytes,
    hack_nonce: int,
    params: HackParams,
    status: HackStatus,
    outcome: HackOutcome,
) -> bytes:
    return _LAYOUT.pack(
        DISCRIMINATOR,
        player_wallet,
        hack_nonce,
        params.hack_power,
        params.stealth,
        params.security_level,
        params.detection_chance,
        params.heat_level,
        params.success_floor,
        int(status),
        int(outcome.success),
        int(outcome.detected),
        outcome.success_roll,
        outcome.success_chance,
        outcome.detection_roll,
        outcome.effective_detection,
        outcome.damage_seed,
    )
