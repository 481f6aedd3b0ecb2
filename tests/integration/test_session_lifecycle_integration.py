from __future__ import annotations

import pytest

from app.core.session_codes import format_session_code, is_valid_session_code
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.game.challenges.types import PlayerPreferences
from app.game.sessions.errors import ErrorCode, ErrorKind
from app.game.sessions.service_facade import GameSessionFacade

from tests.integration.game_session_fixtures import (
    CREATOR_ID,
    OUTSIDER_ID,
    PARTNER_ID,
    FrozenClock,
    create_active_session,
    create_waiting_session,
)


@pytest.mark.asyncio
async def test_create_session_selects_challenges_and_waits_for_partner(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    result = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="male",
        challenge_count=10,
        start_intensity=1,
        is_premium=False,
        selection_seed="seed-1",
    )

    assert result.success is True
    snapshot = result.data.snapshot
    assert is_valid_session_code(snapshot.code)
    assert snapshot.status == "waiting"
    assert snapshot.partner_user_id is None
    assert snapshot.partner_gender is None
    assert snapshot.challenge_count == 10
    assert snapshot.current_challenge_index == 0
    assert snapshot.current_player == "creator"
    assert snapshot.version == 1
    assert snapshot.created_at == clock.now
    assert [c.level for c in snapshot.challenges[:4]] == [1, 1, 1, 1]
    assert [c.for_player for c in snapshot.challenges[:2]] == ["creator", "partner"]
    assert result.data.warnings == []
    assert result.data.stats.selected == 10


@pytest.mark.asyncio
async def test_create_session_enforces_free_tier_limits(facade: GameSessionFacade) -> None:
    allowed = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="female",
        challenge_count=30,
        start_intensity=1,
        is_premium=False,
    )
    too_many = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="female",
        challenge_count=32,
        start_intensity=1,
        is_premium=False,
    )
    intensity = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="female",
        challenge_count=10,
        start_intensity=4,
        is_premium=False,
    )
    toys = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="female",
        challenge_count=10,
        start_intensity=2,
        is_premium=False,
        creator_preferences=PlayerPreferences(include_toys=True, available_toys=("feathers",)),
    )

    assert allowed.success is True
    assert too_many.code == ErrorCode.FREE_CHALLENGE_LIMIT_EXCEEDED
    assert too_many.kind == ErrorKind.AUTHORIZATION
    assert intensity.code == ErrorCode.PREMIUM_REQUIRED
    assert toys.code == ErrorCode.PREMIUM_REQUIRED


@pytest.mark.asyncio
async def test_create_session_rejects_malformed_settings(facade: GameSessionFacade) -> None:
    too_few = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="male",
        challenge_count=1,
        start_intensity=1,
        is_premium=True,
    )
    bad_gender = await facade.create_session(
        creator_user_id=CREATOR_ID,
        creator_gender="robot",
        challenge_count=4,
        start_intensity=1,
        is_premium=True,
    )

    assert too_few.code == ErrorCode.INVALID_CHALLENGE_COUNT
    assert too_few.kind == ErrorKind.VALIDATION
    assert bad_gender.code == ErrorCode.INVALID_GENDER


@pytest.mark.asyncio
async def test_join_session_activates_session(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    code = await create_waiting_session(facade)
    clock.advance(minutes=5)

    result = await facade.join_session(
        code=format_session_code(code).lower(),
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )

    assert result.success is True
    snapshot = result.data.snapshot
    assert snapshot.status == "active"
    assert snapshot.partner_user_id == PARTNER_ID
    assert snapshot.partner_gender == "female"
    assert snapshot.partner_preferences == PlayerPreferences()
    assert snapshot.started_at == clock.now
    assert snapshot.version == 2


@pytest.mark.asyncio
async def test_join_session_rejections(facade: GameSessionFacade) -> None:
    code = await create_waiting_session(facade)

    own = await facade.join_session(code=code, partner_user_id=CREATOR_ID, partner_gender="male")
    malformed = await facade.join_session(
        code="bad",
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )
    joined = await facade.join_session(
        code=code,
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )
    late = await facade.join_session(
        code=code,
        partner_user_id=OUTSIDER_ID,
        partner_gender="male",
    )

    assert own.code == ErrorCode.CANNOT_JOIN_OWN_SESSION
    assert malformed.code == ErrorCode.INVALID_SESSION_CODE
    assert joined.success is True
    assert late.code == ErrorCode.SESSION_ALREADY_STARTED
    assert late.kind == ErrorKind.PRECONDITION_FAILED


@pytest.mark.asyncio
async def test_join_unknown_session_returns_not_found(facade: GameSessionFacade) -> None:
    code = await create_waiting_session(facade)
    unknown = "ABCDEF" if code != "ABCDEF" else "ZYXWVU"

    result = await facade.join_session(
        code=unknown,
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )

    assert result.code == ErrorCode.SESSION_NOT_FOUND
    assert result.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_join_after_window_expires_abandons_session(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    code = await create_waiting_session(facade)
    published: list[object] = []

    async def observer(_code, snapshot):  # noqa: ANN001
        published.append(snapshot)

    facade.subscribe(code, observer)
    clock.advance(hours=25)

    result = await facade.join_session(
        code=code,
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )
    stored = await facade.get_session(code=code, user_id=CREATOR_ID)

    assert result.success is False
    assert result.code == ErrorCode.SESSION_EXPIRED
    assert stored.data.status == "abandoned"
    assert stored.data.partner_user_id is None
    assert [snapshot.status for snapshot in published] == ["abandoned"]

    rejoin = await facade.join_session(
        code=code,
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )
    assert rejoin.code == ErrorCode.SESSION_ABANDONED


@pytest.mark.asyncio
async def test_join_exactly_at_window_end_is_still_accepted(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    code = await create_waiting_session(facade)
    clock.advance(hours=24)

    result = await facade.join_session(
        code=code,
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )

    assert result.success is True
    assert result.data.snapshot.status == "active"


@pytest.mark.asyncio
async def test_delete_session_rules(facade: GameSessionFacade) -> None:
    waiting_code = await create_waiting_session(facade)
    active_code = await create_active_session(facade)

    outsider = await facade.delete_session(code=waiting_code, user_id=OUTSIDER_ID)
    partner = await facade.delete_session(code=active_code, user_id=PARTNER_ID)
    active = await facade.delete_session(code=active_code, user_id=CREATOR_ID)
    deleted = await facade.delete_session(code=waiting_code, user_id=CREATOR_ID)
    lookup = await facade.get_session(code=waiting_code, user_id=CREATOR_ID)

    assert outsider.code == ErrorCode.NOT_SESSION_MEMBER
    assert partner.code == ErrorCode.ONLY_CREATOR_CAN_DELETE
    assert active.code == ErrorCode.SESSION_DELETE_FORBIDDEN
    assert deleted.success is True
    assert deleted.data.code == waiting_code
    assert lookup.code == ErrorCode.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_finished_sessions_can_be_deleted(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)
    ended = await facade.end_session(code=code, user_id=PARTNER_ID)

    deleted = await facade.delete_session(code=code, user_id=CREATOR_ID)

    assert ended.data.snapshot.status == "completed"
    assert deleted.success is True


@pytest.mark.asyncio
async def test_abandon_and_end_transitions(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    waiting_code = await create_waiting_session(facade)
    active_code = await create_active_session(facade)
    clock.advance(minutes=10)

    ended_waiting = await facade.end_session(code=waiting_code, user_id=CREATOR_ID)
    abandoned = await facade.abandon_session(code=active_code, user_id=PARTNER_ID)
    abandoned_again = await facade.abandon_session(code=active_code, user_id=CREATOR_ID)
    ended_abandoned = await facade.end_session(code=active_code, user_id=CREATOR_ID)
    outsider = await facade.abandon_session(code=waiting_code, user_id=OUTSIDER_ID)
    abandoned_waiting = await facade.abandon_session(code=waiting_code, user_id=CREATOR_ID)

    assert ended_waiting.code == ErrorCode.SESSION_NOT_ACTIVE
    assert abandoned.data.snapshot.status == "abandoned"
    assert abandoned.data.snapshot.completed_at == clock.now
    assert abandoned_again.code == ErrorCode.SESSION_ABANDONED
    assert ended_abandoned.code == ErrorCode.SESSION_ABANDONED
    assert outsider.code == ErrorCode.NOT_SESSION_MEMBER
    assert abandoned_waiting.data.snapshot.status == "abandoned"


@pytest.mark.asyncio
async def test_get_session_requires_membership(facade: GameSessionFacade) -> None:
    code = await create_active_session(facade)

    creator = await facade.get_session(code=code, user_id=CREATOR_ID)
    partner = await facade.get_session(code=code, user_id=PARTNER_ID)
    outsider = await facade.get_session(code=code, user_id=OUTSIDER_ID)

    assert creator.data.code == code
    assert partner.data.code == code
    assert outsider.code == ErrorCode.NOT_SESSION_MEMBER
    assert outsider.kind == ErrorKind.AUTHORIZATION


@pytest.mark.asyncio
async def test_active_sessions_and_history_listings(
    facade: GameSessionFacade,
    clock: FrozenClock,
) -> None:
    waiting_code = await create_waiting_session(facade)
    active_code = await create_active_session(facade)
    first_finished = await create_active_session(facade)
    second_finished = await create_active_session(facade)

    clock.advance(minutes=1)
    await facade.end_session(code=first_finished, user_id=CREATOR_ID)
    clock.advance(minutes=1)
    await facade.abandon_session(code=second_finished, user_id=PARTNER_ID)

    creator_active = await facade.get_active_sessions(user_id=CREATOR_ID)
    partner_active = await facade.get_active_sessions(user_id=PARTNER_ID)
    history = await facade.get_session_history(user_id=CREATOR_ID)
    limited = await facade.get_session_history(user_id=CREATOR_ID, limit=1)

    assert {snapshot.code for snapshot in creator_active.data} == {waiting_code, active_code}
    assert {snapshot.code for snapshot in partner_active.data} == {active_code}
    assert [snapshot.code for snapshot in history.data] == [second_finished, first_finished]
    assert [snapshot.code for snapshot in limited.data] == [second_finished]


@pytest.mark.asyncio
async def test_history_is_read_newest_finished_first(
    facade: GameSessionFacade,
    session_factory,  # noqa: ANN001
    clock: FrozenClock,
) -> None:
    older_code = await create_active_session(facade)
    clock.advance(minutes=5)
    newer_code = await create_active_session(facade)
    expired_code = await create_waiting_session(facade)

    clock.advance(minutes=1)
    await facade.end_session(code=newer_code, user_id=CREATOR_ID)
    clock.advance(minutes=1)
    await facade.end_session(code=older_code, user_id=CREATOR_ID)
    clock.advance(hours=25)
    await facade.join_session(
        code=expired_code,
        partner_user_id=PARTNER_ID,
        partner_gender="female",
    )

    async with session_factory() as session:
        first_row = await GameSessionsRepo.list_for_user_by_statuses(
            session,
            user_id=CREATOR_ID,
            statuses=("abandoned", "completed"),
            limit=1,
            newest_finished_first=True,
        )
    history = await facade.get_session_history(user_id=CREATOR_ID)

    assert [row.code for row in first_row] == [older_code]
    assert [snapshot.code for snapshot in history.data] == [older_code, newer_code, expired_code]
