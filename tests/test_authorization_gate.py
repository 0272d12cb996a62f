from datetime import datetime

import pytest

from hack_resolver.authentication.authorization_gate import AuthorizationGate
from hack_resolver.domain.errors import UnauthorizedCallback, UnauthorizedPlayer
from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.models.schema_models import HackSessionSchema

AUTHORITY = "aa" * 32
PLAYER = "11" * 32


def make_user(username: str, identity: str) -> UserModel:
    return UserModel(username=username, hash_password="x", salt="y", identity=identity)


def make_session(player_wallet: str = PLAYER) -> HackSessionSchema:
    return HackSessionSchema(
        session_address="00" * 32,
        player_wallet=player_wallet,
        hack_nonce=1,
        hack_power=10,
        stealth=0,
        security_level=10,
        detection_chance=50,
        heat_level=0,
        success_floor=20,
        status=0,
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


class TestRandomnessAuthority:
    def test_authority_accepted(self):
        gate = AuthorizationGate(AUTHORITY)
        gate.require_randomness_authority(make_user("oracle", AUTHORITY))

    def test_identity_compare_ignores_hex_case(self):
        gate = AuthorizationGate(AUTHORITY.upper())
        assert gate.is_randomness_authority(AUTHORITY)

    def test_player_rejected(self):
        gate = AuthorizationGate(AUTHORITY)
        with pytest.raises(UnauthorizedCallback):
            gate.require_randomness_authority(make_user("player", PLAYER))

    def test_nobody_is_authority_when_unconfigured(self):
        gate = AuthorizationGate(None)
        with pytest.raises(UnauthorizedCallback):
            gate.require_randomness_authority(make_user("oracle", AUTHORITY))


class TestPlayerCapability:
    def test_creation_needs_only_credential(self):
        gate = AuthorizationGate(AUTHORITY)
        gate.require_player_capability(make_user("player", PLAYER), PLAYER)

    def test_authority_cannot_act_as_player(self):
        gate = AuthorizationGate(AUTHORITY)
        with pytest.raises(UnauthorizedPlayer):
            gate.require_player_capability(make_user("oracle", AUTHORITY), PLAYER)

    def test_declared_player_must_own_session(self):
        gate = AuthorizationGate(AUTHORITY)
        with pytest.raises(UnauthorizedPlayer):
            gate.require_player_capability(make_user("player", PLAYER), "22" * 32, make_session())

    def test_owner_accepted(self):
        gate = AuthorizationGate(AUTHORITY)
        gate.require_player_capability(make_user("player", PLAYER), PLAYER, make_session())
