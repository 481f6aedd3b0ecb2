from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.game.sessions.errors import ErrorKind
from app.game.sessions.service_facade import GameSessionFacade
from app.game.sessions.types import OperationResult
from app.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

from .sessions_models import (
    BonusChangeRequest,
    ChangeChallengeRequest,
    CompleteChallengeRequest,
    CreateSessionRequest,
    JoinSessionRequest,
    PartnerChallengeRequestBody,
    PartnerChallengeSubmitRequest,
    SessionMemberRequest,
    SwapChallengeRequest,
    serialize_operation_data,
)

router = APIRouter(prefix="/internal", tags=["internal", "sessions"])
logger = structlog.get_logger(__name__)

ERROR_KIND_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PRECONDITION_FAILED: status.HTTP_409_CONFLICT,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(request, trusted_proxies=settings.internal_api_trusted_proxies)

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning(
            "internal_sessions_auth_failed",
            reason="ip_not_allowed",
            client_ip=client_ip,
        )
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning(
            "internal_sessions_auth_failed",
            reason="invalid_credentials",
            client_ip=client_ip,
        )
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def _get_facade(request: Request) -> GameSessionFacade:
    return request.app.state.session_facade


def _as_response(
    result: OperationResult,
    *,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    payload: dict[str, object] = {"success": result.success}
    if result.success:
        payload["data"] = serialize_operation_data(result.data)
        return JSONResponse(status_code=success_status, content=payload)

    payload["error"] = result.error
    if result.code is not None:
        payload["code"] = result.code.value
    status_code = ERROR_KIND_STATUS_CODES.get(
        result.kind,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return JSONResponse(status_code=status_code, content=payload)


@router.post("/sessions")
async def create_session(payload: CreateSessionRequest, request: Request) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).create_session(
        creator_user_id=payload.creator_user_id,
        creator_gender=payload.creator_gender,
        challenge_count=payload.challenge_count,
        start_intensity=payload.start_intensity,
        is_premium=payload.is_premium,
        creator_preferences=payload.preferences.to_domain() if payload.preferences else None,
        partner_gender=payload.partner_gender,
        partner_preferences=(
            payload.partner_preferences.to_domain() if payload.partner_preferences else None
        ),
        selection_seed=payload.selection_seed,
    )
    return _as_response(result, success_status=status.HTTP_201_CREATED)


@router.post("/sessions/{code}/join")
async def join_session(code: str, payload: JoinSessionRequest, request: Request) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).join_session(
        code=code,
        partner_user_id=payload.user_id,
        partner_gender=payload.gender,
        partner_preferences=payload.preferences.to_domain() if payload.preferences else None,
    )
    return _as_response(result)


@router.get("/sessions/{code}")
async def get_session(
    code: str,
    request: Request,
    user_id: str = Query(min_length=1, max_length=128),
) -> JSONResponse:
    _assert_internal_access(request)
    return _as_response(await _get_facade(request).get_session(code=code, user_id=user_id))


@router.delete("/sessions/{code}")
async def delete_session(
    code: str,
    request: Request,
    user_id: str = Query(min_length=1, max_length=128),
) -> JSONResponse:
    _assert_internal_access(request)
    return _as_response(await _get_facade(request).delete_session(code=code, user_id=user_id))


@router.get("/users/{user_id}/sessions/active")
async def get_active_sessions(
    user_id: str,
    request: Request,
    limit: int = Query(default=100, ge=1, le=100),
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).get_active_sessions(user_id=user_id, limit=limit)
    return _as_response(result)


@router.get("/users/{user_id}/sessions/history")
async def get_session_history(
    user_id: str,
    request: Request,
    limit: int = Query(default=20, ge=1, le=100),
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).get_session_history(user_id=user_id, limit=limit)
    return _as_response(result)


@router.post("/sessions/{code}/abandon")
async def abandon_session(
    code: str,
    payload: SessionMemberRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).abandon_session(code=code, user_id=payload.user_id)
    return _as_response(result)


@router.post("/sessions/{code}/end")
async def end_session(code: str, payload: SessionMemberRequest, request: Request) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).end_session(code=code, user_id=payload.user_id)
    return _as_response(result)


@router.post("/sessions/{code}/challenges/complete")
async def complete_challenge(
    code: str,
    payload: CompleteChallengeRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).complete_challenge(
        code=code,
        user_id=payload.user_id,
        challenge_index=payload.challenge_index,
    )
    return _as_response(result)


@router.get("/sessions/{code}/changes/quota")
async def get_change_quota(
    code: str,
    request: Request,
    user_id: str = Query(min_length=1, max_length=128),
    is_premium: bool = Query(default=False),
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).get_change_quota(
        code=code,
        user_id=user_id,
        is_premium=is_premium,
    )
    return _as_response(result)


@router.post("/sessions/{code}/challenges/alternatives")
async def change_challenge(
    code: str,
    payload: ChangeChallengeRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).change_challenge(
        code=code,
        user_id=payload.user_id,
        is_premium=payload.is_premium,
        selection_seed=payload.selection_seed,
    )
    return _as_response(result)


@router.post("/sessions/{code}/challenges/swap")
async def swap_challenge(
    code: str,
    payload: SwapChallengeRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).swap_challenge(
        code=code,
        user_id=payload.user_id,
        is_premium=payload.is_premium,
        new_challenge=payload.challenge.to_domain(),
    )
    return _as_response(result)


@router.post("/sessions/{code}/changes/bonus")
async def add_bonus_change(
    code: str,
    payload: BonusChangeRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).add_bonus_change(
        code=code,
        user_id=payload.user_id,
        reward_earned=payload.reward_earned,
    )
    return _as_response(result)


@router.post("/sessions/{code}/partner-challenge/request")
async def request_partner_challenge(
    code: str,
    payload: PartnerChallengeRequestBody,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).request_partner_challenge(
        code=code,
        user_id=payload.user_id,
        is_user_premium=payload.is_user_premium,
        is_partner_premium=payload.is_partner_premium,
    )
    return _as_response(result)


@router.post("/sessions/{code}/partner-challenge/submit")
async def submit_partner_challenge(
    code: str,
    payload: PartnerChallengeSubmitRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).submit_partner_challenge(
        code=code,
        user_id=payload.user_id,
        text=payload.text,
        level=payload.level,
        media_type=payload.media_type,
    )
    return _as_response(result)


@router.post("/sessions/{code}/partner-challenge/cancel")
async def cancel_partner_challenge_request(
    code: str,
    payload: SessionMemberRequest,
    request: Request,
) -> JSONResponse:
    _assert_internal_access(request)
    result = await _get_facade(request).cancel_partner_challenge_request(
        code=code,
        user_id=payload.user_id,
    )
    return _as_response(result)
