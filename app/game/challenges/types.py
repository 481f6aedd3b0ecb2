from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Gender = Literal["male", "female"]
PlayerRole = Literal["creator", "partner"]
MediaType = Literal["text", "photo", "audio", "video"]

GENDERS: tuple[str, ...] = ("male", "female")
PLAYER_ROLES: tuple[str, ...] = ("creator", "partner")
MEDIA_TYPES: tuple[str, ...] = ("text", "photo", "audio", "video")
OPTIONAL_MEDIA_TYPES: tuple[str, ...] = ("photo", "audio", "video")
INTENSITY_LEVELS: tuple[int, ...] = (1, 2, 3, 4)

CLASSIC_THEME = "classic"


@dataclass(frozen=True, slots=True)
class ChallengeTemplate:
    template_id: str
    gender: str
    level: int
    theme: str
    media_type: str
    text: str
    toy_name: str | None = None

    @property
    def has_toy(self) -> bool:
        return self.toy_name is not None


@dataclass(frozen=True, slots=True)
class MediaPreferences:
    photo: bool = True
    audio: bool = True
    video: bool = True

    def allowed_media_types(self) -> frozenset[str]:
        allowed = {"text"}
        if self.photo:
            allowed.add("photo")
        if self.audio:
            allowed.add("audio")
        if self.video:
            allowed.add("video")
        return frozenset(allowed)

    def to_payload(self) -> dict[str, bool]:
        return {"photo": self.photo, "audio": self.audio, "video": self.video}


@dataclass(frozen=True, slots=True)
class PlayerPreferences:
    selected_themes: tuple[str, ...] = (CLASSIC_THEME,)
    include_toys: bool = False
    available_toys: tuple[str, ...] = ()
    media: MediaPreferences = field(default_factory=MediaPreferences)

    def __post_init__(self) -> None:
        themes = tuple(theme.strip().lower() for theme in self.selected_themes if theme.strip())
        object.__setattr__(self, "selected_themes", themes or (CLASSIC_THEME,))
        object.__setattr__(
            self,
            "available_toys",
            tuple(toy.strip().lower() for toy in self.available_toys if toy.strip()),
        )

    def to_payload(self) -> dict[str, object]:
        return {
            "selected_themes": list(self.selected_themes),
            "include_toys": self.include_toys,
            "available_toys": list(self.available_toys),
            "media": self.media.to_payload(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, object] | None) -> PlayerPreferences:
        if not payload:
            return cls()
        media_payload = payload.get("media") or {}
        return cls(
            selected_themes=tuple(payload.get("selected_themes") or (CLASSIC_THEME,)),
            include_toys=bool(payload.get("include_toys", False)),
            available_toys=tuple(payload.get("available_toys") or ()),
            media=MediaPreferences(
                photo=bool(media_payload.get("photo", True)),
                audio=bool(media_payload.get("audio", True)),
                video=bool(media_payload.get("video", True)),
            ),
        )


@dataclass(frozen=True, slots=True)
class SelectionConfig:
    creator_gender: str
    partner_gender: str
    challenge_count: int
    start_intensity: int
    is_premium: bool
    creator_preferences: PlayerPreferences = field(default_factory=PlayerPreferences)
    partner_preferences: PlayerPreferences = field(default_factory=PlayerPreferences)
    selection_seed: str | None = None

    def gender_for(self, role: str) -> str:
        return self.creator_gender if role == "creator" else self.partner_gender

    def preferences_for(self, role: str) -> PlayerPreferences:
        return self.creator_preferences if role == "creator" else self.partner_preferences


@dataclass(slots=True)
class SelectionStats:
    by_level: dict[int, int]
    by_media_type: dict[str, int]
    by_role: dict[str, int]
    requested: int
    selected: int


@dataclass(slots=True)
class PlannedSlot:
    position: int
    role: str
    level: int


@dataclass(slots=True)
class SessionChallenge:
    """One entry of a session's ordered challenge list.

    ``for_player`` is the performer; the validator is always the other role.
    ``for_gender`` only selects the wording and never drives turn logic.
    """

    challenge_id: str
    text: str
    level: int
    media_type: str
    for_gender: str
    for_player: str
    theme: str = CLASSIC_THEME
    toy_name: str | None = None
    completed: bool = False
    completed_by: str | None = None
    completed_at: datetime | None = None
    created_by_partner: bool = False

    @property
    def has_toy(self) -> bool:
        return self.toy_name is not None

    @property
    def validator_role(self) -> str:
        return "partner" if self.for_player == "creator" else "creator"

    @classmethod
    def from_template(cls, template: ChallengeTemplate, *, for_player: str) -> SessionChallenge:
        return cls(
            challenge_id=template.template_id,
            text=template.text,
            level=template.level,
            media_type=template.media_type,
            for_gender=template.gender,
            for_player=for_player,
            theme=template.theme,
            toy_name=template.toy_name,
        )

    def to_payload(self) -> dict[str, object]:
        return {
            "challenge_id": self.challenge_id,
            "text": self.text,
            "level": self.level,
            "media_type": self.media_type,
            "for_gender": self.for_gender,
            "for_player": self.for_player,
            "theme": self.theme,
            "toy_name": self.toy_name,
            "completed": self.completed,
            "completed_by": self.completed_by,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "created_by_partner": self.created_by_partner,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> SessionChallenge:
        completed_at = payload.get("completed_at")
        return cls(
            challenge_id=str(payload["challenge_id"]),
            text=str(payload["text"]),
            level=int(payload["level"]),
            media_type=str(payload["media_type"]),
            for_gender=str(payload["for_gender"]),
            for_player=str(payload["for_player"]),
            theme=str(payload.get("theme") or CLASSIC_THEME),
            toy_name=payload.get("toy_name") or None,
            completed=bool(payload.get("completed", False)),
            completed_by=payload.get("completed_by") or None,
            completed_at=(
                datetime.fromisoformat(str(completed_at)) if completed_at else None
            ),
            created_by_partner=bool(payload.get("created_by_partner", False)),
        )


@dataclass(slots=True)
class SelectionResult:
    challenges: list[SessionChallenge]
    stats: SelectionStats
    warnings: list[str]

    @property
    def is_complete(self) -> bool:
        return self.stats.selected >= self.stats.requested
