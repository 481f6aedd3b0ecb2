from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.game.challenges.types import INTENSITY_LEVELS, MEDIA_TYPES, SessionChallenge
from app.game.sessions.constants import (
    PARTNER_CHALLENGE_DEFAULT_LEVEL,
    PARTNER_CHALLENGE_DEFAULT_MEDIA_TYPE,
    PARTNER_CHALLENGE_MAX_LENGTH,
    PARTNER_CHALLENGE_MIN_LENGTH,
    PARTNER_CHALLENGE_THEME,
    opposite_role,
)
from app.game.sessions.errors import (
    BothPremiumRequiredError,
    InvalidChallengeTextError,
    InvalidIntensityError,
    InvalidMediaTypeError,
    NoPendingChallengeError,
    OnlyRequesterCanCancelError,
    PendingChallengeExistsError,
    SelfSubmissionForbiddenError,
)
from app.game.sessions.types import SessionMutationResult

from .internal import (
    _build_session_snapshot,
    _clear_pending_partner_challenge,
    _current_challenge_or_raise,
    _ensure_aware,
    _load_session_or_raise,
    _read_challenges,
    _require_active,
    _require_member_role,
    _touch,
    _write_challenges,
)

logger = structlog.get_logger(__name__)


def normalize_partner_challenge_text(text: str | None) -> str:
    normalized = (text or "").strip()
    if not PARTNER_CHALLENGE_MIN_LENGTH <= len(normalized) <= PARTNER_CHALLENGE_MAX_LENGTH:
        raise InvalidChallengeTextError
    return normalized


async def request_partner_challenge(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    is_user_premium: bool,
    is_partner_premium: bool,
    now_utc: datetime,
) -> SessionMutationResult:
    # Entitlements are checked before the session is even read.
    if not (is_user_premium and is_partner_premium):
        raise BothPremiumRequiredError

    game_session = await _load_session_or_raise(session, code=code)
    _require_active(game_session)
    role = _require_member_role(game_session, user_id=user_id)
    if game_session.pending_challenge_created_by is not None:
        raise PendingChallengeExistsError

    game_session.pending_challenge_created_by = user_id
    game_session.pending_challenge_for_player = opposite_role(role)
    game_session.pending_challenge_created_at = now_utc
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info(
        "partner_challenge_requested",
        session_code=game_session.code,
        role=role,
        for_player=game_session.pending_challenge_for_player,
    )
    return SessionMutationResult(snapshot=_build_session_snapshot(game_session))


async def submit_partner_challenge(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    text: str,
    now_utc: datetime,
    level: int = PARTNER_CHALLENGE_DEFAULT_LEVEL,
    media_type: str = PARTNER_CHALLENGE_DEFAULT_MEDIA_TYPE,
) -> SessionMutationResult:
    normalized_text = normalize_partner_challenge_text(text)
    if level not in INTENSITY_LEVELS:
        raise InvalidIntensityError
    if media_type not in MEDIA_TYPES:
        raise InvalidMediaTypeError

    game_session = await _load_session_or_raise(session, code=code)
    _require_active(game_session)
    role = _require_member_role(game_session, user_id=user_id)
    if game_session.pending_challenge_created_by is None:
        raise NoPendingChallengeError
    if game_session.pending_challenge_created_by == user_id:
        raise SelfSubmissionForbiddenError

    for_player = game_session.pending_challenge_for_player or opposite_role(role)
    challenges = _read_challenges(game_session)
    index = int(game_session.current_challenge_index)
    current = _current_challenge_or_raise(challenges, index=index)
    created_at = _ensure_aware(game_session.pending_challenge_created_at) or now_utc
    challenges[index] = SessionChallenge(
        challenge_id=f"partner_{game_session.code.lower()}_{index}_{int(created_at.timestamp())}",
        text=normalized_text,
        level=level,
        media_type=media_type,
        for_gender=current.for_gender,
        for_player=for_player,
        theme=PARTNER_CHALLENGE_THEME,
        created_by_partner=True,
    )
    _write_challenges(game_session, challenges)
    game_session.current_player = for_player
    _clear_pending_partner_challenge(game_session)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info(
        "partner_challenge_submitted",
        session_code=game_session.code,
        role=role,
        challenge_index=index,
        level=level,
        media_type=media_type,
    )
    return SessionMutationResult(snapshot=_build_session_snapshot(game_session))


async def cancel_partner_challenge_request(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    now_utc: datetime,
) -> SessionMutationResult:
    game_session = await _load_session_or_raise(session, code=code)
    role = _require_member_role(game_session, user_id=user_id)
    if game_session.pending_challenge_created_by is None:
        raise NoPendingChallengeError
    if game_session.pending_challenge_created_by != user_id:
        raise OnlyRequesterCanCancelError

    _clear_pending_partner_challenge(game_session)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info("partner_challenge_request_canceled", session_code=game_session.code, role=role)
    return SessionMutationResult(snapshot=_build_session_snapshot(game_session))
