from __future__ import annotations

from collections import Counter
from functools import lru_cache

from app.game.challenges.types import ChallengeTemplate

# (theme, media_type, text), addressed from the performer to the partner.
_RawEntry = tuple[str, str, str]

_LEVEL_1_MALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Record yourself naming three things you love about her."),
    ("classic", "audio", "Sing her the first line of a song that makes you think of her."),
    ("classic", "text", "Describe your favourite memory of the two of you in five sentences."),
    ("classic", "text", "Write her a good-night message she can reread tomorrow morning."),
    ("classic", "photo", "Send her a photo of something that made you think of her today."),
    ("classic", "text", "List five reasons you miss her right now."),
    ("classic", "audio", "Tell her the moment you knew you were falling for her."),
    ("classic", "video", "Film a ten-second tour of the spot where you are sitting right now."),
    ("classic", "text", "Plan her ideal lazy Sunday with you, hour by hour."),
    ("classic", "photo", "Send her a selfie with the smile you only give her."),
    ("classic", "text", "Write her a compliment she has never heard from you before."),
    ("classic", "audio", "Read a short poem out loud and dedicate it to her."),
    ("romantic", "text", "Write the opening line of the love letter you would post to her."),
    ("romantic", "audio", "Whisper the three words you would say to her if she were next to you."),
    ("playful", "video", "Do your best impression of her laugh in under fifteen seconds."),
    ("playful", "text", "Invent a secret nickname for her and explain where it comes from."),
    ("nostalgia", "photo", "Send a photo of yourself from before you met and tell her its story."),
    ("nostalgia", "text", "Describe what went through your head the first time you saw her."),
)

_LEVEL_1_FEMALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Record yourself naming three things you love about him."),
    ("classic", "audio", "Hum him the tune that always brings him back to your mind."),
    ("classic", "text", "Tell him about the day you first felt completely at home with him."),
    ("classic", "text", "Write him a good-morning message for the moment he wakes up."),
    ("classic", "photo", "Send him a photo of the view you wish you were sharing with him."),
    ("classic", "text", "List five little habits of his that you secretly adore."),
    ("classic", "audio", "Tell him when you realised you were falling in love with him."),
    ("classic", "video", "Film a ten-second clip of your favourite corner of your home."),
    ("classic", "text", "Describe the trip you would love him to surprise you with."),
    ("classic", "photo", "Send him a selfie wearing something he once complimented."),
    ("classic", "text", "Write down the nicest thing he ever did for you and thank him."),
    ("classic", "audio", "Read him a passage from a book that made you think of the two of you."),
    ("romantic", "text", "Write the last line of a love letter addressed to him."),
    ("romantic", "audio", "Tell him softly what you would say if you were in his arms right now."),
    ("playful", "video", "Imitate the face he makes when he concentrates, in under fifteen seconds."),
    ("playful", "text", "Give him a new pet name and tell him why he deserves it."),
    ("nostalgia", "photo", "Send him a childhood photo and tell him what you dreamed of back then."),
    ("nostalgia", "text", "Describe what you first noticed about him the day you met."),
)

_LEVEL_2_MALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Describe in a voice note the outfit you would love to see her wear tonight."),
    ("classic", "text", "Tell her what you would whisper in her ear during a slow dance."),
    ("classic", "photo", "Send her a photo of your best look for an imaginary dinner date."),
    ("classic", "text", "Describe the first kiss you want to give her when you see her next."),
    ("classic", "video", "Blow her a kiss on camera with your most charming wink."),
    ("classic", "audio", "Tell her the detail about her that always distracts you."),
    ("classic", "text", "Write her a flirty text she will find on her phone tomorrow morning."),
    ("classic", "photo", "Send her a photo that shows only your eyes and a hint of a smile."),
    ("classic", "audio", "Describe a candle-lit evening you would prepare for her, in one breath."),
    ("classic", "text", "Confess a moment when she looked irresistible without knowing it."),
    ("romantic", "video", "Film yourself slow-dancing alone to your song for ten seconds."),
    ("romantic", "text", "Describe the weekend getaway you are secretly planning for her."),
    ("playful", "audio", "Give her a sports-commentator play-by-play of your last hug."),
    ("playful", "photo", "Send her a photo of yourself copying her favourite pose."),
    ("adventure", "text", "Name a place where you want to kiss her for the first time, and why."),
    ("sensual", "audio", "Explain step by step the massage you would give her with warm oil."),
    ("sensual", "text", "Describe the path a feather would trace along her back if you held it."),
)

_LEVEL_2_FEMALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Describe in a voice note the shirt you would love to take off him."),
    ("classic", "text", "Tell him what you would murmur to him while resting your head on his chest."),
    ("classic", "photo", "Send him a photo of the dress you would wear on your next date."),
    ("classic", "text", "Describe the kiss you will greet him with next time he opens the door."),
    ("classic", "video", "Send him a playful wink on camera and say his name slowly."),
    ("classic", "audio", "Tell him which of his features you cannot stop looking at."),
    ("classic", "text", "Write him a teasing message to find during his lunch break."),
    ("classic", "photo", "Send him a photo of your lips with a hint of a smile."),
    ("classic", "audio", "Describe the cosy night in you would plan for him, in one breath."),
    ("classic", "text", "Confess the last time he made your heart race without noticing."),
    ("romantic", "video", "Film yourself swaying to the song you want to dance to with him."),
    ("romantic", "text", "Describe the city where you would love to spend a night alone with him."),
    ("playful", "audio", "Narrate his morning routine like a nature documentary."),
    ("playful", "photo", "Send him a photo wearing one of his shirts."),
    ("adventure", "text", "Name the most romantic rooftop where you would ask him for a kiss."),
    ("sensual", "audio", "Tell him how slowly you would work massage oil into his shoulders."),
    ("sensual", "text", "Describe where you would let a feather wander across his skin."),
)

_LEVEL_3_MALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Tell her, in a low voice, what you would do the second you walked through her door."),
    ("classic", "text", "Describe your most daring fantasy date with her in three bold sentences."),
    ("classic", "photo", "Send her a photo of the outfit you would only wear for her."),
    ("classic", "video", "Film a slow, teasing smile meant only for her."),
    ("classic", "text", "Confess the moment you found her most attractive."),
    ("classic", "audio", "Describe the kiss you would give her if nobody could ever interrupt."),
    ("classic", "text", "Write the rules of a game you want to play with her next time."),
    ("classic", "photo", "Send her a photo hinting at where you would like her hands to be."),
    ("classic", "audio", "Say her name the way you would say it at midnight."),
    ("classic", "text", "Describe the touch of hers you miss the most, as precisely as you can."),
    ("sensual", "video", "Film a ten-second dance you would only ever show her."),
    ("sensual", "text", "Describe the first three things you would do once her eyes are behind a blindfold."),
    ("sensual", "audio", "Tell her who would wear the handcuffs tonight and what happens next."),
    ("adventure", "text", "Name the most unusual place where you would dare to steal a kiss from her."),
    ("playful", "photo", "Send her a photo of the first piece of clothing you would lose in a game of cards."),
)

_LEVEL_3_FEMALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Tell him, in a low voice, how you would greet him after a long week apart."),
    ("classic", "text", "Describe the most daring evening you would like him to plan for you."),
    ("classic", "photo", "Send him a photo of the lingerie you would choose for your next night together."),
    ("classic", "video", "Film yourself biting your lip and thinking about him."),
    ("classic", "text", "Confess the situation in which he was the most desirable to you."),
    ("classic", "audio", "Describe how you would kiss his neck if he were sitting next to you."),
    ("classic", "text", "Write him the three conditions for winning your next bet."),
    ("classic", "photo", "Send him a photo hinting at where you would like his lips to be."),
    ("classic", "audio", "Whisper his name the way you would say it in the dark."),
    ("classic", "text", "Describe the caress of his that you crave the most right now."),
    ("sensual", "video", "Film a ten-second sway of your hips meant only for him."),
    ("sensual", "text", "Describe how you would lead him around the room with a blindfold over his eyes."),
    ("sensual", "audio", "Explain to him what you would ask once his wrists are in handcuffs."),
    ("adventure", "text", "Name the most unexpected place where you would pull him close."),
    ("playful", "photo", "Send him a photo of the accessory you would take off first in a game of dares."),
)

_LEVEL_4_MALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Describe, without holding back, how your perfect night with her ends."),
    ("classic", "text", "Write her an invitation to the boldest evening you can imagine."),
    ("classic", "photo", "Send her the most daring photo you are comfortable sharing."),
    ("classic", "video", "Film a private message she should only open when she is alone."),
    ("classic", "text", "List the three wildest wishes you have for your next night with her."),
    ("classic", "audio", "Narrate a bold story starring the two of you, at least thirty seconds long."),
    ("classic", "text", "Tell her the one thing you have always wanted to ask her to try."),
    ("classic", "photo", "Send her a photo that will make her blush in public."),
    ("sensual", "video", "Film yourself putting on a blindfold and tell her what she should do next."),
    ("sensual", "audio", "Guide her through a massage oil ritual she performs on herself, slowly."),
    ("sensual", "text", "Write the scene for her: one pair of handcuffs, one chair, one rule."),
    ("adventure", "text", "Plan a secret hotel rendezvous with her, including the password at the door."),
)

_LEVEL_4_FEMALE: tuple[_RawEntry, ...] = (
    ("classic", "audio", "Tell him, holding nothing back, how you want your next night together to begin."),
    ("classic", "text", "Write him a permission slip for anything he wants on your next evening."),
    ("classic", "photo", "Send him the boldest photo you feel good about sharing."),
    ("classic", "video", "Film a message he should only watch once the lights are off."),
    ("classic", "text", "List the three fantasies you have never dared to say to him out loud."),
    ("classic", "audio", "Tell him a thirty-second story in which you are the one in charge."),
    ("classic", "text", "Describe the one thing you would like him to do to you without asking."),
    ("classic", "photo", "Send him a photo that he will have to hide from everyone around him."),
    ("sensual", "video", "Film yourself tying on a blindfold and tell him what you expect of him."),
    ("sensual", "audio", "Describe how you would pour warm oil over his back and what follows."),
    ("sensual", "text", "Write the scene for him: your handcuffs, his wrists, your rules."),
    ("adventure", "text", "Plan a masked evening with him where you arrive as a stranger."),
)

_RAW_BY_LEVEL_AND_GENDER: dict[tuple[int, str], tuple[_RawEntry, ...]] = {
    (1, "male"): _LEVEL_1_MALE,
    (1, "female"): _LEVEL_1_FEMALE,
    (2, "male"): _LEVEL_2_MALE,
    (2, "female"): _LEVEL_2_FEMALE,
    (3, "male"): _LEVEL_3_MALE,
    (3, "female"): _LEVEL_3_FEMALE,
    (4, "male"): _LEVEL_4_MALE,
    (4, "female"): _LEVEL_4_FEMALE,
}

# First matching keyword wins, so more specific toys are listed first.
_TOY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "handcuffs": ("handcuff",),
    "blindfold": ("blindfold",),
    "massage_oil": ("massage oil", "warm oil"),
    "feathers": ("feather",),
}

KNOWN_TOYS: tuple[str, ...] = tuple(sorted(_TOY_KEYWORDS))


def detect_toy(text: str) -> str | None:
    lowered = text.lower()
    for toy_name, keywords in _TOY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return toy_name
    return None


def _build_pool() -> tuple[ChallengeTemplate, ...]:
    templates: list[ChallengeTemplate] = []
    for (level, gender), entries in _RAW_BY_LEVEL_AND_GENDER.items():
        for index, (theme, media_type, text) in enumerate(entries, start=1):
            templates.append(
                ChallengeTemplate(
                    template_id=f"l{level}_{gender[0]}_{index:03d}",
                    gender=gender,
                    level=level,
                    theme=theme,
                    media_type=media_type,
                    text=text,
                    toy_name=detect_toy(text),
                )
            )
    return tuple(templates)


@lru_cache(maxsize=1)
def get_challenge_pool() -> tuple[ChallengeTemplate, ...]:
    return _build_pool()


def list_themes(pool: tuple[ChallengeTemplate, ...] | None = None) -> list[str]:
    resolved_pool = get_challenge_pool() if pool is None else pool
    return sorted({template.theme for template in resolved_pool})


def pool_stats(pool: tuple[ChallengeTemplate, ...] | None = None) -> dict[str, object]:
    resolved_pool = get_challenge_pool() if pool is None else pool
    by_level: Counter[int] = Counter()
    by_gender: Counter[str] = Counter()
    by_theme: Counter[str] = Counter()
    by_media_type: Counter[str] = Counter()
    by_toy: Counter[str] = Counter()
    for template in resolved_pool:
        by_level[template.level] += 1
        by_gender[template.gender] += 1
        by_theme[template.theme] += 1
        by_media_type[template.media_type] += 1
        if template.toy_name is not None:
            by_toy[template.toy_name] += 1
    return {
        "total": len(resolved_pool),
        "by_level": dict(sorted(by_level.items())),
        "by_gender": dict(sorted(by_gender.items())),
        "by_theme": dict(sorted(by_theme.items())),
        "by_media_type": dict(sorted(by_media_type.items())),
        "with_toy": sum(by_toy.values()),
        "by_toy": dict(sorted(by_toy.items())),
    }
