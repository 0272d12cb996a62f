import logging
from fastapi import APIRouter, Depends, status, HTTPException
from fastapi.responses import StreamingResponse

from hack_resolver.authentication.basic_authentication import BasicAuthentication
from hack_resolver.converter import DataConverter
from hack_resolver.domain.errors import (
    AlreadyResolved,
    DuplicateSession,
    HackSessionError,
    InvalidParams,
    NotResolved,
    SessionNotFound,
    UnauthorizedCallback,
    UnauthorizedPlayer,
)
from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.models.dc_models import (
    DelegateHackModel,
    DelegationModel,
    HackAuditModel,
    HackResultModel,
    HackSessionModel,
    InitiateHackModel,
    RandomnessRequestModel,
    RequestRandomnessModel,
    ResolveHackModel,
)
from hack_resolver.redis_subscriber import ResolutionSubscriber
from hack_resolver.services import hack_db, hack_lifecycle, oracle

hack_router = APIRouter()
basic_auth = BasicAuthentication()
data_converter = DataConverter()

ERROR_STATUS = {
    InvalidParams: status.HTTP_422_UNPROCESSABLE_CONTENT,
    AlreadyResolved: status.HTTP_409_CONFLICT,
    NotResolved: status.HTTP_409_CONFLICT,
    DuplicateSession: status.HTTP_409_CONFLICT,
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    UnauthorizedCallback: status.HTTP_403_FORBIDDEN,
    UnauthorizedPlayer: status.HTTP_403_FORBIDDEN,
}


def to_http_exception(error: HackSessionError) -> HTTPException:
    status_code = ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    logging.info(f"{error.kind}: {error.detail}")
    return HTTPException(
        status_code=status_code,
        detail={"kind": error.kind, "message": error.detail},
    )


class PlayerServer:
    @staticmethod
    @hack_router.post("/initiate-hack", response_model=HackSessionModel)
    async def initiate_hack(
        hack_data: InitiateHackModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        """Create a pending hack session

        Args:
            hack_data (InitiateHackModel): Player, optional nonce and the hack parameters
            user_data (UserModel): The user data for authentication
        """
        try:
            hack_session = await hack_lifecycle.initiate(user_data, hack_data)
        except HackSessionError as e:
            raise to_http_exception(e) from e
        return data_converter.convert_hacksessionschema_to_hacksessionmodel(hack_session)

    @staticmethod
    @hack_router.post("/request-randomness", response_model=RandomnessRequestModel)
    async def request_randomness(
        request_data: RequestRandomnessModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        """Queue a randomness request for the oracle. The session stays pending."""
        try:
            randomness_request = await hack_lifecycle.request_randomness(user_data, request_data)
        except HackSessionError as e:
            raise to_http_exception(e) from e
        return data_converter.convert_randomnessrequestschema_to_randomnessrequestmodel(
            randomness_request
        )

    @staticmethod
    @hack_router.post("/delegate-hack", response_model=DelegationModel)
    async def delegate_hack(
        delegate_data: DelegateHackModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        """Move the session to another execution context, content unchanged

        Args:
            delegate_data (DelegateHackModel): Session, declared player and target context
            user_data (UserModel): The user data for authentication
        """
        try:
            hack_session, delegation = await hack_lifecycle.delegate(user_data, delegate_data)
        except HackSessionError as e:
            raise to_http_exception(e) from e
        return data_converter.convert_delegation_to_delegationmodel(hack_session, delegation)


class OracleServer:
    @staticmethod
    @hack_router.post("/resolve-hack", response_model=HackResultModel)
    async def resolve_hack(
        resolve_data: ResolveHackModel,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        """Callback of the randomness oracle

        Args:
            resolve_data (ResolveHackModel): Session address and 32 bytes of randomness
            user_data (UserModel): Must be the randomness authority
        """
        try:
            hack_session = await hack_lifecycle.resolve(user_data, resolve_data)
        except HackSessionError as e:
            raise to_http_exception(e) from e
        return data_converter.convert_hacksessionschema_to_hackresultmodel(hack_session)


class ReadServer:
    @staticmethod
    @hack_router.get("/hack-session/{session_address}", response_model=HackSessionModel)
    async def read_hack_session(
        session_address: str,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        hack_session = await hack_db.read_hack_session(session_address)
        if hack_session is None:
            raise to_http_exception(SessionNotFound())
        return data_converter.convert_hacksessionschema_to_hacksessionmodel(hack_session)

    @staticmethod
    @hack_router.get("/hack-session/{session_address}/audit", response_model=HackAuditModel)
    async def read_hack_audit(
        session_address: str,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        """Randomness requests and delegations recorded for the session, oldest first"""
        try:
            randomness_requests, delegations = await hack_lifecycle.read_audit(session_address)
        except HackSessionError as e:
            raise to_http_exception(e) from e
        return data_converter.convert_audit_to_hackauditmodel(
            session_address, randomness_requests, delegations
        )

    @staticmethod
    @hack_router.get("/hack-result/{session_address}", response_model=HackResultModel)
    async def read_hack_result(
        session_address: str,
        wait: bool = False,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        """Read the outcome of a session

        Args:
            session_address (str): To identify the hack session
            wait (bool): Poll until resolved instead of failing with NotResolved
        """
        try:
            hack_session = await hack_lifecycle.read_result(session_address, wait)
        except HackSessionError as e:
            raise to_http_exception(e) from e
        except TimeoutError as e:
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Hack session not resolved before timeout",
            ) from e
        return data_converter.convert_hacksessionschema_to_hackresultmodel(hack_session)

    @staticmethod
    @hack_router.get("/stream/{session_address}")
    async def stream_hack_session(
        session_address: str,
        user_data: UserModel = Depends(basic_auth.check_user_data),
    ):
        if await hack_db.read_hack_session(session_address) is None:
            raise to_http_exception(SessionNotFound())
        channel = oracle.resolution_channel(session_address)
        resolution_subscriber = ResolutionSubscriber(session_address)

        return StreamingResponse(
            resolution_subscriber.event_generator(channel, oracle.redis),
            media_type="text/event-stream; charset=utf-8",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )
