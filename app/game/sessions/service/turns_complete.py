from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.game.sessions.constants import ROLE_CREATOR, SESSION_STATUS_COMPLETED
from app.game.sessions.errors import (
    ChallengeAlreadyCompletedError,
    ChallengeNotFoundError,
    NotYourTurnError,
)
from app.game.sessions.progress import session_progress
from app.game.sessions.types import CompleteChallengeResult

from .internal import (
    _build_session_snapshot,
    _clear_pending_partner_challenge,
    _load_session_or_raise,
    _read_challenges,
    _require_active,
    _require_member_role,
    _touch,
    _write_challenges,
)

logger = structlog.get_logger(__name__)


def _check_requested_index(*, requested_index: int, current_index: int, total: int) -> None:
    # Guards clients that act on a stale view of the session.
    if requested_index < 0 or requested_index >= total:
        raise ChallengeNotFoundError
    if requested_index < current_index:
        raise ChallengeAlreadyCompletedError
    if requested_index > current_index:
        raise NotYourTurnError


async def complete_challenge(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    now_utc: datetime,
    challenge_index: int | None = None,
) -> CompleteChallengeResult:
    game_session = await _load_session_or_raise(session, code=code)
    role = _require_member_role(game_session, user_id=user_id)
    challenges = _read_challenges(game_session)
    if (
        challenge_index is not None
        and 0 <= challenge_index < len(challenges)
        and challenges[challenge_index].completed
    ):
        raise ChallengeAlreadyCompletedError
    _require_active(game_session)

    current_index = int(game_session.current_challenge_index)
    if challenge_index is not None:
        _check_requested_index(
            requested_index=challenge_index,
            current_index=current_index,
            total=len(challenges),
        )
    if current_index >= len(challenges):
        raise ChallengeNotFoundError

    current = challenges[current_index]
    if current.completed:
        raise ChallengeAlreadyCompletedError
    if role != current.validator_role:
        raise NotYourTurnError

    current.completed = True
    current.completed_by = user_id
    current.completed_at = now_utc
    _write_challenges(game_session, challenges)

    next_index = current_index + 1
    is_game_over = next_index >= int(game_session.challenge_count)
    next_challenge = None if is_game_over else challenges[next_index]
    game_session.current_challenge_index = next_index
    game_session.current_player = (
        next_challenge.for_player if next_challenge is not None else ROLE_CREATOR
    )
    if is_game_over:
        game_session.status = SESSION_STATUS_COMPLETED
        game_session.completed_at = now_utc
        _clear_pending_partner_challenge(game_session)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    progress = session_progress(challenges, challenge_count=int(game_session.challenge_count))
    logger.info(
        "challenge_completed",
        session_code=game_session.code,
        challenge_index=current_index,
        validator_role=role,
        progress=progress,
        is_game_over=is_game_over,
    )
    return CompleteChallengeResult(
        snapshot=_build_session_snapshot(game_session),
        completed_index=current_index,
        next_challenge=next_challenge,
        next_index=None if is_game_over else next_index,
        is_game_over=is_game_over,
        progress=progress,
    )
