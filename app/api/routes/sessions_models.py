from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from app.game.challenges.types import (
    CLASSIC_THEME,
    MediaPreferences,
    PlayerPreferences,
    SelectionStats,
    SessionChallenge,
)
from app.game.sessions.types import (
    BonusChangeResult,
    ChangeChallengeResult,
    ChangeQuota,
    CompleteChallengeResult,
    CreateSessionResult,
    SessionDeleteResult,
    SessionMutationResult,
    SessionSnapshot,
    SwapChallengeResult,
)

UserId = Annotated[str, Field(min_length=1, max_length=128)]


class MediaPreferencesModel(BaseModel):
    photo: bool = True
    audio: bool = True
    video: bool = True


class PlayerPreferencesModel(BaseModel):
    selected_themes: list[str] = Field(default_factory=lambda: [CLASSIC_THEME], max_length=32)
    include_toys: bool = False
    available_toys: list[str] = Field(default_factory=list, max_length=32)
    media: MediaPreferencesModel = Field(default_factory=MediaPreferencesModel)

    def to_domain(self) -> PlayerPreferences:
        return PlayerPreferences(
            selected_themes=tuple(self.selected_themes),
            include_toys=self.include_toys,
            available_toys=tuple(self.available_toys),
            media=MediaPreferences(
                photo=self.media.photo,
                audio=self.media.audio,
                video=self.media.video,
            ),
        )


class CreateSessionRequest(BaseModel):
    creator_user_id: UserId
    creator_gender: str = Field(min_length=1, max_length=16)
    challenge_count: int
    start_intensity: int
    is_premium: bool = False
    preferences: PlayerPreferencesModel | None = None
    partner_gender: str | None = Field(default=None, max_length=16)
    partner_preferences: PlayerPreferencesModel | None = None
    selection_seed: str | None = Field(default=None, max_length=64)


class JoinSessionRequest(BaseModel):
    user_id: UserId
    gender: str = Field(min_length=1, max_length=16)
    preferences: PlayerPreferencesModel | None = None


class SessionMemberRequest(BaseModel):
    user_id: UserId


class CompleteChallengeRequest(BaseModel):
    user_id: UserId
    challenge_index: int | None = None


class ChangeChallengeRequest(BaseModel):
    user_id: UserId
    is_premium: bool = False
    selection_seed: str | None = Field(default=None, max_length=64)


class ChallengeModel(BaseModel):
    challenge_id: str = Field(min_length=1, max_length=128)
    text: str = Field(min_length=1, max_length=2000)
    level: int
    media_type: str = Field(min_length=1, max_length=16)
    for_gender: str = Field(min_length=1, max_length=16)
    # The performer of the replaced position always wins over this value.
    for_player: Literal["creator", "partner"] = "creator"
    theme: str = Field(default=CLASSIC_THEME, max_length=64)
    toy_name: str | None = Field(default=None, max_length=64)

    def to_domain(self) -> SessionChallenge:
        return SessionChallenge(
            challenge_id=self.challenge_id,
            text=self.text,
            level=self.level,
            media_type=self.media_type,
            for_gender=self.for_gender,
            for_player=self.for_player,
            theme=self.theme,
            toy_name=self.toy_name,
        )


class SwapChallengeRequest(BaseModel):
    user_id: UserId
    is_premium: bool = False
    challenge: ChallengeModel


class BonusChangeRequest(BaseModel):
    user_id: UserId
    reward_earned: bool = True


class PartnerChallengeRequestBody(BaseModel):
    user_id: UserId
    is_user_premium: bool = False
    is_partner_premium: bool = False


class PartnerChallengeSubmitRequest(BaseModel):
    user_id: UserId
    text: str = Field(max_length=2000)
    level: int = 2
    media_type: str = Field(default="text", max_length=16)


def _stats_payload(stats: SelectionStats | None) -> dict[str, Any] | None:
    if stats is None:
        return None
    return {
        "by_level": {str(level): count for level, count in stats.by_level.items()},
        "by_media_type": dict(stats.by_media_type),
        "by_role": dict(stats.by_role),
        "requested": stats.requested,
        "selected": stats.selected,
    }


def serialize_operation_data(data: Any) -> Any:
    if data is None:
        return None
    if isinstance(data, list):
        return [serialize_operation_data(item) for item in data]
    if isinstance(data, (SessionSnapshot, SessionChallenge, ChangeQuota)):
        return data.to_payload()
    if isinstance(data, CreateSessionResult):
        return {
            "code": data.snapshot.code,
            "display_code": data.snapshot.display_code,
            "session": data.snapshot.to_payload(),
            "warnings": list(data.warnings),
            "stats": _stats_payload(data.stats),
        }
    if isinstance(data, SessionMutationResult):
        return {"session": data.snapshot.to_payload()}
    if isinstance(data, SessionDeleteResult):
        return {"code": data.code}
    if isinstance(data, CompleteChallengeResult):
        return {
            "session": data.snapshot.to_payload(),
            "completed_index": data.completed_index,
            "next_challenge": (
                data.next_challenge.to_payload() if data.next_challenge is not None else None
            ),
            "next_index": data.next_index,
            "is_game_over": data.is_game_over,
            "progress": data.progress,
        }
    if isinstance(data, ChangeChallengeResult):
        return {
            "alternatives": [challenge.to_payload() for challenge in data.alternatives],
            "quota": data.quota.to_payload(),
        }
    if isinstance(data, SwapChallengeResult):
        return {
            "session": data.snapshot.to_payload(),
            "replaced_index": data.replaced_index,
            "quota": data.quota.to_payload(),
        }
    if isinstance(data, BonusChangeResult):
        return {
            "session": data.snapshot.to_payload(),
            "bonus_total": data.bonus_total,
            "max_bonus": data.max_bonus,
        }
    raise TypeError(f"unsupported operation data: {type(data).__name__}")
