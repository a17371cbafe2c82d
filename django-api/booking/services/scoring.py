"""Multi-factor relevance scoring for feed items.

The score is the sum of six independent terms:

- interaction history, weighted by type and decayed by age
- skill match between the user's level and the product's tags
- a precomputed collaborative-filtering score
- recency of the product itself
- urgency (almost full or starting soon)
- membership affinity (an active discount would actually lower a price)

Skill match and urgency exit early once their best value is reached.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from booking.domain.models import (
    InteractionEvent,
    Membership,
    Product,
    Session,
    SkillLevel,
)
from booking.services.pricing import round_half_up

INTERACTION_WEIGHTS: dict[str, int] = {
    "book": 10,
    "tap": 5,
    "view": 1,
    "dismiss": -3,
}

SKILL_SCALE: tuple[SkillLevel, ...] = tuple(SkillLevel)

TAG_TO_SKILL: dict[str, SkillLevel] = {
    "beginner": SkillLevel.BEGINNER,
    "intermediate": SkillLevel.INTERMEDIATE,
    "advanced": SkillLevel.ADVANCED,
    "pro": SkillLevel.PRO,
    "competitive": SkillLevel.PRO,
}

EXACT_SKILL_SCORE = 15
ADJACENT_SKILL_SCORE = 5
ALMOST_FULL_SCORE = 8
STARTING_SOON_SCORE = 5
ALMOST_FULL_THRESHOLD = 3
STARTING_SOON_WINDOW = timedelta(hours=24)
MEMBERSHIP_AFFINITY_SCORE = 5
MAX_COLLABORATIVE_SCORE = 10


def _age_in_days(created_at: datetime, now: datetime) -> float:
    return (now - created_at).total_seconds() / 86400


def time_decay(created_at: datetime, now: datetime) -> float:
    age = _age_in_days(created_at, now)
    if age <= 7:
        return 1.0
    if age <= 30:
        return 0.5
    if age <= 90:
        return 0.2
    return 0.05


def interaction_score(
    product: Product,
    interactions: Iterable[InteractionEvent],
    now: datetime,
) -> float:
    total = 0.0
    for event in interactions:
        if event.product_id != product.id:
            continue
        weight = INTERACTION_WEIGHTS.get(event.interaction_type, 0)
        total += weight * time_decay(event.created_at, now)
    return total


def skill_match_score(user_skill: SkillLevel | None, tags: Sequence[str]) -> int:
    if user_skill is None or not tags:
        return 0

    user_index = SKILL_SCALE.index(user_skill)
    best_distance: int | None = None

    for tag in tags:
        tag_skill = TAG_TO_SKILL.get(tag.lower())
        if tag_skill is None:
            continue
        distance = abs(user_index - SKILL_SCALE.index(tag_skill))
        if distance == 0:
            return EXACT_SKILL_SCORE
        if best_distance is None or distance < best_distance:
            best_distance = distance

    return ADJACENT_SKILL_SCORE if best_distance == 1 else 0


def recency_score(product: Product, now: datetime) -> int:
    age = _age_in_days(product.created_at, now)
    if age <= 7:
        return 10
    if age <= 30:
        return 5
    return 0


def urgency_score(sessions: Iterable[Session], now: datetime) -> int:
    score = 0
    soon = now + STARTING_SOON_WINDOW

    for session in sessions:
        remaining = session.spots_remaining.value
        if 0 < remaining < ALMOST_FULL_THRESHOLD:
            return ALMOST_FULL_SCORE
        if remaining > 0 and session.starts_at <= soon:
            score = STARTING_SOON_SCORE

    return score


def membership_affinity_score(
    membership: Membership | None,
    sessions: Iterable[Session],
) -> int:
    """Award a bonus only when the discount would make some session cheaper.

    A small percentage on a small price can round back to the original price.
    """
    if membership is None or not membership.is_active:
        return 0
    if membership.discount_percent <= 0:
        return 0

    keep = 1 - Decimal(membership.discount_percent) / 100
    for session in sessions:
        price = session.price.cents
        if round_half_up(price * keep) < price:
            return MEMBERSHIP_AFFINITY_SCORE
    return 0


def normalize_collaborative_scores(counts: Mapping[str, int]) -> dict[str, int]:
    """Scale raw co-booking counts so the most co-booked product scores 10."""
    if not counts:
        return {}
    top = max(1, *counts.values())
    return {
        product_id: round_half_up(Decimal(count) / top * MAX_COLLABORATIVE_SCORE)
        for product_id, count in counts.items()
    }


def score(
    product: Product,
    sessions: Sequence[Session],
    interactions: Iterable[InteractionEvent],
    user_skill: SkillLevel | None,
    collaborative_score: float | None,
    membership: Membership | None,
    now: datetime,
) -> float:
    """Return the relevance score of one product, rounded to 2 decimals."""
    total = (
        interaction_score(product, interactions, now)
        + skill_match_score(user_skill, product.tags)
        + (collaborative_score or 0)
        + recency_score(product, now)
        + urgency_score(sessions, now)
        + membership_affinity_score(membership, sessions)
    )
    return round_half_up(Decimal(str(total)) * 100) / 100
