"""Feed assembly: price sessions, score products, rank."""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Mapping, Sequence

from booking.domain.models import (
    InteractionEvent,
    Membership,
    PricingRule,
    Product,
    Session,
    SkillLevel,
)
from booking.domain.value_objects import Money
from booking.services import scoring
from booking.services.pricing import apply_rules

SESSIONS_PER_ITEM = 5


@dataclass(frozen=True)
class FeedItem:
    """A ranked product with its upcoming, display-priced sessions."""

    product: Product
    sessions: tuple[Session, ...]
    next_session: Session | None
    relevance_score: float

    @property
    def id(self) -> str:
        return str(self.product.id)


def price_session(session: Session, rules: Sequence[PricingRule]) -> Session:
    """Return the session with its price replaced by the rule-adjusted price."""
    if not rules:
        return session
    display_price = apply_rules(session.price.cents, session.starts_at, rules)
    return replace(session, price=Money(display_price))


def group_sessions(
    sessions: Sequence[Session],
    rules: Sequence[PricingRule],
) -> dict[str, list[Session]]:
    grouped: dict[str, list[Session]] = {}
    for session in sessions:
        grouped.setdefault(str(session.product_id), []).append(
            price_session(session, rules)
        )
    return grouped


def _sort_key(item: FeedItem) -> tuple[float, float]:
    next_start = (
        item.next_session.starts_at.timestamp() if item.next_session else math.inf
    )
    return (-item.relevance_score, next_start)


def assemble(
    products: Sequence[Product],
    sessions: Sequence[Session],
    interactions: Sequence[InteractionEvent],
    rules: Sequence[PricingRule],
    user_skill: SkillLevel | None,
    collaborative_scores: Mapping[str, float],
    membership: Membership | None,
    now: datetime,
    sessions_per_item: int = SESSIONS_PER_ITEM,
) -> list[FeedItem]:
    """Build the ranked feed.

    Sessions keep their input order per product; the first one is the next
    session. Products without sessions are dropped. Ties on score go to the
    product whose next session starts first.
    """
    by_product = group_sessions(sessions, rules)
    items: list[FeedItem] = []

    for product in products:
        product_sessions = by_product.get(str(product.id), [])
        if not product_sessions:
            continue
        relevance = scoring.score(
            product,
            product_sessions,
            interactions,
            user_skill,
            collaborative_scores.get(str(product.id)),
            membership,
            now,
        )
        items.append(
            FeedItem(
                product=product,
                sessions=tuple(product_sessions[:sessions_per_item]),
                next_session=product_sessions[0],
                relevance_score=relevance,
            )
        )

    items.sort(key=_sort_key)
    return items
