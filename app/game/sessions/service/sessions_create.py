from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.session_codes import generate_session_code
from app.db.models.game_sessions import GameSession
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.game.challenges.limits import (
    MIN_TOTAL_CHALLENGES,
    exceeds_free_challenge_limit,
    exceeds_premium_challenge_limit,
    requires_premium_intensity,
)
from app.game.challenges.types import (
    GENDERS,
    INTENSITY_LEVELS,
    PlayerPreferences,
    SelectionStats,
    SessionChallenge,
)
from app.game.sessions.constants import (
    SESSION_CODE_MAX_ATTEMPTS,
    SESSION_STATUS_WAITING,
)
from app.game.sessions.errors import (
    CodeGenerationFailedError,
    FreeChallengeLimitExceededError,
    InvalidChallengeCountError,
    InvalidGenderError,
    InvalidIntensityError,
    NoChallengesAvailableError,
    PremiumRequiredError,
)
from app.game.sessions.types import CreateSessionResult

from .internal import _build_session_snapshot, _write_challenges

logger = structlog.get_logger(__name__)


def validate_session_settings(
    *,
    creator_gender: str,
    challenge_count: int,
    start_intensity: int,
    is_premium: bool,
    preferences: PlayerPreferences,
) -> None:
    """Rejects settings the caller is not entitled to, then malformed ones."""
    if not is_premium:
        if exceeds_free_challenge_limit(challenge_count):
            raise FreeChallengeLimitExceededError
        if requires_premium_intensity(start_intensity):
            raise PremiumRequiredError("Intensity level 4 requires Premium")
        if preferences.include_toys:
            raise PremiumRequiredError("Toy challenges require Premium")

    if creator_gender not in GENDERS:
        raise InvalidGenderError
    if challenge_count < MIN_TOTAL_CHALLENGES or exceeds_premium_challenge_limit(challenge_count):
        raise InvalidChallengeCountError
    if start_intensity not in INTENSITY_LEVELS:
        raise InvalidIntensityError


async def _allocate_session_code(
    session: AsyncSession,
    *,
    code_factory: Callable[[], str],
) -> str:
    for attempt in range(1, SESSION_CODE_MAX_ATTEMPTS + 1):
        code = code_factory()
        if not await GameSessionsRepo.code_exists(session, code):
            return code
        logger.info("session_code_collision", attempt=attempt)
    raise CodeGenerationFailedError


async def create_session(
    session: AsyncSession,
    *,
    creator_user_id: str,
    creator_gender: str,
    challenge_count: int,
    start_intensity: int,
    is_premium: bool,
    challenges: Sequence[SessionChallenge],
    creator_preferences: PlayerPreferences | None = None,
    selection_warnings: Sequence[str] = (),
    selection_stats: SelectionStats | None = None,
    now_utc: datetime,
    code_factory: Callable[[], str] = generate_session_code,
) -> CreateSessionResult:
    preferences = creator_preferences or PlayerPreferences()
    validate_session_settings(
        creator_gender=creator_gender,
        challenge_count=challenge_count,
        start_intensity=start_intensity,
        is_premium=is_premium,
        preferences=preferences,
    )
    if not challenges:
        raise NoChallengesAvailableError

    code = await _allocate_session_code(session, code_factory=code_factory)
    game_session = GameSession(
        code=code,
        creator_user_id=creator_user_id,
        creator_gender=creator_gender,
        partner_user_id=None,
        partner_gender=None,
        status=SESSION_STATUS_WAITING,
        # A soft-failed selection stores what was actually drawn.
        challenge_count=len(challenges),
        start_intensity=start_intensity,
        current_challenge_index=0,
        current_player=challenges[0].for_player,
        creator_preferences=preferences.to_payload(),
        partner_preferences=None,
        creator_changes_used=0,
        partner_changes_used=0,
        creator_bonus_changes=0,
        partner_bonus_changes=0,
        created_at=now_utc,
        updated_at=now_utc,
    )
    _write_challenges(game_session, challenges)
    await GameSessionsRepo.create(session, game_session=game_session)

    logger.info(
        "session_created",
        session_code=code,
        creator_user_id=creator_user_id,
        requested_challenges=challenge_count,
        stored_challenges=len(challenges),
        start_intensity=start_intensity,
        is_premium=is_premium,
    )
    return CreateSessionResult(
        snapshot=_build_session_snapshot(game_session),
        warnings=list(selection_warnings),
        stats=selection_stats,
    )
