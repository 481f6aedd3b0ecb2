from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.game_sessions import GameSession
from app.game.challenges.limits import is_level_accessible
from app.game.challenges.selection import get_alternatives
from app.game.challenges.types import (
    INTENSITY_LEVELS,
    MEDIA_TYPES,
    SelectionConfig,
    SessionChallenge,
)
from app.game.sessions.constants import MAX_BONUS_CHANGES, ROLE_CREATOR, ROLE_PARTNER
from app.game.sessions.errors import (
    AdRewardNotEarnedError,
    InvalidIntensityError,
    InvalidMediaTypeError,
    MaxBonusReachedError,
    NoChangesLeftError,
    PremiumRequiredError,
)
from app.game.sessions.types import (
    BonusChangeResult,
    ChangeChallengeResult,
    ChangeQuota,
    SwapChallengeResult,
)

from .internal import (
    _bonus_changes,
    _build_change_quota,
    _build_session_snapshot,
    _current_challenge_or_raise,
    _increment_bonus_changes,
    _increment_changes_used,
    _load_session_or_raise,
    _read_challenges,
    _read_preferences,
    _require_active,
    _require_member_role,
    _touch,
    _write_challenges,
)

logger = structlog.get_logger(__name__)


def _require_quota_left(quota: ChangeQuota) -> None:
    if quota.is_unlimited:
        return
    if quota.remaining is None or quota.remaining <= 0:
        raise NoChangesLeftError


def _selection_config_for(
    game_session: GameSession,
    *,
    is_premium: bool,
    selection_seed: str | None,
) -> SelectionConfig:
    return SelectionConfig(
        creator_gender=game_session.creator_gender,
        partner_gender=game_session.partner_gender or game_session.creator_gender,
        challenge_count=int(game_session.challenge_count),
        start_intensity=int(game_session.start_intensity),
        is_premium=is_premium,
        creator_preferences=_read_preferences(game_session, role=ROLE_CREATOR),
        partner_preferences=_read_preferences(game_session, role=ROLE_PARTNER),
        selection_seed=selection_seed,
    )


async def get_change_quota(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    is_premium: bool,
) -> ChangeQuota:
    game_session = await _load_session_or_raise(session, code=code)
    role = _require_member_role(game_session, user_id=user_id)
    return _build_change_quota(game_session, role=role, is_premium=is_premium)


async def change_challenge(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    is_premium: bool,
    selection_seed: str | None = None,
) -> ChangeChallengeResult:
    """Offers replacements for the current challenge without consuming quota."""
    game_session = await _load_session_or_raise(session, code=code)
    _require_active(game_session)
    role = _require_member_role(game_session, user_id=user_id)
    quota = _build_change_quota(game_session, role=role, is_premium=is_premium)
    _require_quota_left(quota)

    challenges = _read_challenges(game_session)
    index = int(game_session.current_challenge_index)
    _current_challenge_or_raise(challenges, index=index)
    alternatives = get_alternatives(
        challenges,
        index,
        _selection_config_for(game_session, is_premium=is_premium, selection_seed=selection_seed),
    )
    logger.info(
        "challenge_alternatives_offered",
        session_code=game_session.code,
        role=role,
        challenge_index=index,
        alternatives_total=len(alternatives),
        remaining_changes=quota.remaining,
    )
    return ChangeChallengeResult(alternatives=alternatives, quota=quota)


async def swap_challenge(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    is_premium: bool,
    new_challenge: SessionChallenge,
    now_utc: datetime,
) -> SwapChallengeResult:
    game_session = await _load_session_or_raise(session, code=code)
    _require_active(game_session)
    role = _require_member_role(game_session, user_id=user_id)
    _require_quota_left(_build_change_quota(game_session, role=role, is_premium=is_premium))

    if new_challenge.media_type not in MEDIA_TYPES:
        raise InvalidMediaTypeError
    if new_challenge.level not in INTENSITY_LEVELS:
        raise InvalidIntensityError
    if not is_level_accessible(new_challenge.level, is_premium=is_premium):
        raise PremiumRequiredError("Intensity level 4 requires Premium")

    challenges = _read_challenges(game_session)
    index = int(game_session.current_challenge_index)
    current = _current_challenge_or_raise(challenges, index=index)
    # The performer of a position never changes with its content.
    challenges[index] = SessionChallenge(
        challenge_id=new_challenge.challenge_id,
        text=new_challenge.text,
        level=new_challenge.level,
        media_type=new_challenge.media_type,
        for_gender=new_challenge.for_gender,
        for_player=current.for_player,
        theme=new_challenge.theme,
        toy_name=new_challenge.toy_name,
        created_by_partner=new_challenge.created_by_partner,
    )
    _write_challenges(game_session, challenges)
    _increment_changes_used(game_session, role=role)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    quota = _build_change_quota(game_session, role=role, is_premium=is_premium)
    logger.info(
        "challenge_swapped",
        session_code=game_session.code,
        role=role,
        challenge_index=index,
        remaining_changes=quota.remaining,
        is_premium=is_premium,
    )
    return SwapChallengeResult(
        snapshot=_build_session_snapshot(game_session),
        replaced_index=index,
        quota=quota,
    )


async def add_bonus_change(
    session: AsyncSession,
    *,
    code: str,
    user_id: str,
    reward_earned: bool,
    now_utc: datetime,
) -> BonusChangeResult:
    game_session = await _load_session_or_raise(session, code=code)
    _require_active(game_session)
    role = _require_member_role(game_session, user_id=user_id)
    if _bonus_changes(game_session, role=role) >= MAX_BONUS_CHANGES:
        raise MaxBonusReachedError
    if not reward_earned:
        raise AdRewardNotEarnedError

    bonus_total = _increment_bonus_changes(game_session, role=role)
    _touch(game_session, now_utc=now_utc)
    await session.flush()

    logger.info(
        "bonus_change_granted",
        session_code=game_session.code,
        role=role,
        bonus_total=bonus_total,
    )
    return BonusChangeResult(
        snapshot=_build_session_snapshot(game_session),
        bonus_total=bonus_total,
        max_bonus=MAX_BONUS_CHANGES,
    )
