from __future__ import annotations

import pytest

from app.game.challenges.types import SessionChallenge
from app.game.sessions.errors import ErrorCode
from app.game.sessions.service_facade import GameSessionFacade

from tests.integration.game_session_fixtures import (
    CREATOR_ID,
    OUTSIDER_ID,
    PARTNER_ID,
    FrozenClock,
    create_active_session,
    create_waiting_session,
)


def _replacement(index: int, *, level: int = 1, for_player: str = "partner") -> SessionChallenge:
    return SessionChallenge(
        challenge_id=f"replacement_{index}",
        text=f"Replacement challenge number {index}",
        level=level,
        media_type="photo",
        for_gender="female",
        for_player=for_player,
    )


def _validator_for(position: int) -> str:
    # Even positions are performed by the creator and validated by the partner.
    return PARTNER_ID if position % 2 == 0 else CREATOR_ID


@pytest.mark.asyncio
async def test_only_the_validator_can_complete_the_current_challenge(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    code = await create_active_session(facade)
    clock.advance(minutes=3)

    performer = await facade.complete_challenge(code=code, user_id=CREATOR_ID)
    validator = await facade.complete_challenge(code=code, user_id=PARTNER_ID)

    assert performer.code == ErrorCode.NOT_YOUR_TURN
    assert validator.success is True
    result = validator.data
    assert result.completed_index == 0
    assert result.next_index == 1
    assert result.is_game_over is False
    assert result.progress == 25
    assert result.next_challenge.for_player == "partner"
    completed = result.snapshot.challenges[0]
    assert completed.completed is True
    assert completed.completed_by == PARTNER_ID
    assert completed.completed_at == clock.now
    assert result.snapshot.current_player == "partner"


@pytest.mark.asyncio
async def test_progress_rounds_halves_up_on_eight_challenges(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade, challenge_count=8)

    first = await facade.complete_challenge(code=code, user_id=PARTNER_ID)

    assert first.success is True
    assert first.data.progress == 13


@pytest.mark.asyncio
async def test_complete_challenge_is_idempotent_per_index(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    first = await facade.complete_challenge(code=code, user_id=PARTNER_ID, challenge_index=0)
    second = await facade.complete_challenge(code=code, user_id=PARTNER_ID, challenge_index=0)
    ahead = await facade.complete_challenge(code=code, user_id=PARTNER_ID, challenge_index=2)
    missing = await facade.complete_challenge(code=code, user_id=CREATOR_ID, challenge_index=9)

    assert first.success is True
    assert second.code == ErrorCode.CHALLENGE_ALREADY_COMPLETED
    assert ahead.code == ErrorCode.NOT_YOUR_TURN
    assert missing.code == ErrorCode.CHALLENGE_NOT_FOUND


@pytest.mark.asyncio
async def test_completing_last_challenge_finishes_the_session(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    code = await create_active_session(facade, challenge_count=4)

    results = []
    for position in range(4):
        clock.advance(minutes=1)
        results.append(
            await facade.complete_challenge(code=code, user_id=_validator_for(position))
        )

    assert all(result.success for result in results)
    final = results[-1].data
    assert final.is_game_over is True
    assert final.next_index is None
    assert final.next_challenge is None
    assert final.progress == 100
    assert final.snapshot.status == "completed"
    assert final.snapshot.completed_at == clock.now
    assert final.snapshot.current_challenge_index == 4
    for position, challenge in enumerate(final.snapshot.challenges):
        assert challenge.completed_by == _validator_for(position)

    again = await facade.complete_challenge(code=code, user_id=CREATOR_ID, challenge_index=3)
    after = await facade.complete_challenge(code=code, user_id=CREATOR_ID)
    assert again.code == ErrorCode.CHALLENGE_ALREADY_COMPLETED
    assert after.code == ErrorCode.SESSION_COMPLETED


@pytest.mark.asyncio
async def test_turn_actions_require_an_active_session(facade: GameSessionFacade) -> None:
    code = await create_waiting_session(facade)

    complete = await facade.complete_challenge(code=code, user_id=CREATOR_ID)
    change = await facade.change_challenge(code=code, user_id=CREATOR_ID, is_premium=False)
    bonus = await facade.add_bonus_change(code=code, user_id=CREATOR_ID)

    assert complete.code == ErrorCode.SESSION_NOT_ACTIVE
    assert change.code == ErrorCode.SESSION_NOT_ACTIVE
    assert bonus.code == ErrorCode.SESSION_NOT_ACTIVE


@pytest.mark.asyncio
async def test_outsider_cannot_act_on_a_session(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    complete = await facade.complete_challenge(code=code, user_id=OUTSIDER_ID)
    quota = await facade.get_change_quota(code=code, user_id=OUTSIDER_ID, is_premium=False)

    assert complete.code == ErrorCode.NOT_SESSION_MEMBER
    assert quota.code == ErrorCode.NOT_SESSION_MEMBER


@pytest.mark.asyncio
async def test_change_challenge_offers_alternatives_without_spending_quota(
    facade: GameSessionFacade,
) -> None:
    code = await create_active_session(facade)

    offered = await facade.change_challenge(
        code=code,
        user_id=CREATOR_ID,
        is_premium=False,
        selection_seed="seed-1",
    )
    quota = await facade.get_change_quota(code=code, user_id=CREATOR_ID, is_premium=False)

    assert offered.success is True
    assert len(offered.data.alternatives) == 2
    for alternative in offered.data.alternatives:
        assert alternative.level == 1
        assert alternative.for_player == "creator"
        assert alternative.for_gender == "male"
    assert quota.data.remaining == 3
    assert quota.data.total == 3
    assert quota.data.can_watch_ad is True


@pytest.mark.asyncio
async def test_swap_challenge_keeps_performer_and_spends_quota(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    swapped = await facade.swap_challenge(
        code=code,
        user_id=CREATOR_ID,
        is_premium=False,
        new_challenge=_replacement(1, for_player="partner"),
    )

    assert swapped.success is True
    replaced = swapped.data.snapshot.challenges[0]
    assert swapped.data.replaced_index == 0
    assert replaced.challenge_id == "replacement_1"
    assert replaced.for_player == "creator"
    assert replaced.completed is False
    assert swapped.data.quota.remaining == 2
    assert swapped.data.snapshot.changes_used == {"creator": 1, "partner": 0}


@pytest.mark.asyncio
async def test_free_quota_is_capped_at_three_plus_bonus(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    for index in range(3):
        swapped = await facade.swap_challenge(
            code=code,
            user_id=PARTNER_ID,
            is_premium=False,
            new_challenge=_replacement(index),
        )
        assert swapped.success is True

    exhausted_swap = await facade.swap_challenge(
        code=code,
        user_id=PARTNER_ID,
        is_premium=False,
        new_challenge=_replacement(9),
    )
    exhausted_change = await facade.change_challenge(
        code=code,
        user_id=PARTNER_ID,
        is_premium=False,
    )
    bonus = await facade.add_bonus_change(code=code, user_id=PARTNER_ID)
    after_bonus = await facade.swap_challenge(
        code=code,
        user_id=PARTNER_ID,
        is_premium=False,
        new_challenge=_replacement(10),
    )
    creator_quota = await facade.get_change_quota(code=code, user_id=CREATOR_ID, is_premium=False)

    assert exhausted_swap.code == ErrorCode.NO_CHANGES_LEFT
    assert exhausted_change.code == ErrorCode.NO_CHANGES_LEFT
    assert bonus.data.bonus_total == 1
    assert after_bonus.success is True
    assert after_bonus.data.quota.total == 4
    assert after_bonus.data.quota.remaining == 0
    assert after_bonus.data.snapshot.changes_used["partner"] == 4
    assert creator_quota.data.remaining == 3


@pytest.mark.asyncio
async def test_bonus_changes_stop_at_three(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    not_earned = await facade.add_bonus_change(code=code, user_id=CREATOR_ID, reward_earned=False)
    granted = [await facade.add_bonus_change(code=code, user_id=CREATOR_ID) for _ in range(3)]
    fourth = await facade.add_bonus_change(code=code, user_id=CREATOR_ID)
    quota = await facade.get_change_quota(code=code, user_id=CREATOR_ID, is_premium=False)

    assert not_earned.code == ErrorCode.AD_REWARD_NOT_EARNED
    assert [result.data.bonus_total for result in granted] == [1, 2, 3]
    assert fourth.code == ErrorCode.MAX_BONUS_REACHED
    assert quota.data.total == 6
    assert quota.data.bonus_changes == 3
    assert quota.data.can_watch_ad is False


@pytest.mark.asyncio
async def test_premium_players_are_never_blocked_by_quota(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade, is_premium=True)

    for index in range(5):
        swapped = await facade.swap_challenge(
            code=code,
            user_id=CREATOR_ID,
            is_premium=True,
            new_challenge=_replacement(index),
        )
        assert swapped.success is True
        assert swapped.data.quota.is_unlimited is True
        assert swapped.data.quota.remaining is None

    offered = await facade.change_challenge(code=code, user_id=CREATOR_ID, is_premium=True)
    assert offered.success is True
    assert offered.data.quota.can_watch_ad is False


@pytest.mark.asyncio
async def test_swap_rejects_premium_level_for_free_players(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    result = await facade.swap_challenge(
        code=code,
        user_id=CREATOR_ID,
        is_premium=False,
        new_challenge=_replacement(1, level=4),
    )
    quota = await facade.get_change_quota(code=code, user_id=CREATOR_ID, is_premium=False)

    assert result.code == ErrorCode.PREMIUM_REQUIRED
    assert quota.data.remaining == 3
