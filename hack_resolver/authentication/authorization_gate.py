import logging
import secrets

from hack_resolver.domain.errors import UnauthorizedCallback, UnauthorizedPlayer
from hack_resolver.load_secrets import vrf_authority_identity
from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.models.schema_models import HackSessionSchema


class AuthorizationGate:
    """Capability checks for hack session operations.

    Two capabilities exist and are never conflated: the player/operator
    capability (initiate, request randomness, delegate) and the randomness
    authority capability (resolve). The authority is a single configured
    identity compared explicitly, nothing else can resolve.
    """

    def __init__(self, authority_identity: str | None = vrf_authority_identity):
        self.authority_identity: str | None = (
            authority_identity.lower() if authority_identity else None
        )

    def is_randomness_authority(self, identity: str) -> bool:
        if self.authority_identity is None:
            return False
        return secrets.compare_digest(identity.lower().encode(), self.authority_identity.encode())

    def require_randomness_authority(self, user_data: UserModel) -> None:
        """Allow only the randomness authority to deliver randomness

        Raises:
            UnauthorizedCallback: caller identity is not the authority identity
        """
        if not self.is_randomness_authority(user_data.identity):
            logging.warning(f"Rejected resolve from {user_data.username}")
            raise UnauthorizedCallback()

    def require_player_capability(
        self,
        user_data: UserModel,
        declared_player: str,
        session_data: HackSessionSchema | None = None,
    ) -> None:
        """Allow player/operator operations

        Creation only needs a valid credential. Operations on an existing
        session also need the declared player to match the stored one.

        Args:
            user_data (UserModel): authenticated caller
            declared_player (str): player identity named by the operation
            session_data (HackSessionSchema | None): stored record, None on creation

        Raises:
            UnauthorizedPlayer: caller is the authority or the player does not match
        """
        if self.is_randomness_authority(user_data.identity):
            logging.warning(f"Randomness authority {user_data.username} attempted a player operation")
            raise UnauthorizedPlayer("The randomness authority cannot perform player operations")
        if session_data is None:
            return
        if not secrets.compare_digest(
            declared_player.lower().encode(), session_data.player_wallet.encode()
        ):
            raise UnauthorizedPlayer("Declared player does not own this hack session")
