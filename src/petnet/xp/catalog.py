"""Static challenge catalog.

Definitions are immutable and process-wide; progress rows reference them by
``id``. Changing a ``goal`` only affects rows on their next update.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from petnet.errors import NotFound

Cadence = Literal["daily", "weekly", "seasonal"]

CADENCES: tuple[str, ...] = ("daily", "weekly", "seasonal")


@dataclass(frozen=True, slots=True)
class ChallengeDefinition:
    id: str
    name: str
    description: str
    cadence: Cadence
    goal: int
    xp_reward: int
    # Each unit of progress must name a recipient not yet used today.
    requires_recipient: bool = False

    def __post_init__(self) -> None:
        if self.cadence not in CADENCES:
            raise ValueError(f"Unknown cadence {self.cadence!r} for {self.id}")
        if self.goal <= 0:
            raise ValueError(f"Challenge {self.id} must have a positive goal")
        if self.xp_reward < 0:
            raise ValueError(f"Challenge {self.id} has a negative XP reward")


DAILY_CHALLENGES: tuple[ChallengeDefinition, ...] = (
    ChallengeDefinition("daily_login", "Daily Login", "Log in today", "daily", 1, 10),
    ChallengeDefinition("daily_like_3_posts", "Like 3 Posts", "Like 3 posts today", "daily", 3, 15),
    ChallengeDefinition("daily_post_photo", "Post a Photo", "Post a timeline photo", "daily", 1, 25),
    ChallengeDefinition(
        "daily_expand_petnet",
        "Expand Petnet",
        "Share Petnet with 3 different friends today",
        "daily",
        3,
        20,
        requires_recipient=True,
    ),
)

WEEKLY_CHALLENGES: tuple[ChallengeDefinition, ...] = (
    ChallengeDefinition(
        "weekly_comment_10_posts", "Comment on 10 Posts", "Comment on 10 posts this week", "weekly", 10, 75,
    ),
    ChallengeDefinition(
        "weekly_join_challenge", "Join the Weekly Challenge", "Submit a post to the weekly challenge",
        "weekly", 1, 50,
    ),
)

SEASONAL_CHALLENGES: tuple[ChallengeDefinition, ...] = (
    ChallengeDefinition("seasonal_gain_100_followers", "Gain 100 Followers", "Gain 100 followers", "seasonal", 100, 500),
    ChallengeDefinition("seasonal_post_20_photos", "Post 20 Photos", "Post 20 timeline photos", "seasonal", 20, 300),
    ChallengeDefinition("seasonal_comment_50_posts", "Comment on 50 Posts", "Comment on 50 posts", "seasonal", 50, 200),
)

ALL_CHALLENGES: tuple[ChallengeDefinition, ...] = DAILY_CHALLENGES + WEEKLY_CHALLENGES + SEASONAL_CHALLENGES

_BY_ID: dict[str, ChallengeDefinition] = {c.id: c for c in ALL_CHALLENGES}


def get_challenge(challenge_id: str) -> ChallengeDefinition:
    """Look up a challenge definition, raising NotFound for unknown ids."""
    try:
        return _BY_ID[challenge_id]
    except KeyError:
        raise NotFound("Challenge not found") from None
