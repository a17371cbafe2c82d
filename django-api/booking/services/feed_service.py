"""Feed service - personalised, ranked and paginated catalog.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from datetime import datetime, timedelta
from typing import Sequence

from booking.conf import booking_setting
from booking.domain import InteractionEvent, InteractionType, ProductId, ProductType, Session
from booking.domain.errors import ProductNotFoundError, ValidationError
from booking.services.feed import FeedItem, assemble, price_session
from booking.services.pagination import Page, paginate
from booking.services.scoring import normalize_collaborative_scores
from booking.stores.interfaces import (
    CatalogFilters,
    CatalogStore,
    InteractionStore,
    PricingRuleStore,
    ProfileStore,
)

logger = logging.getLogger(__name__)


def parse_product_id(product_id: str) -> ProductId:
    try:
        return ProductId.from_string(product_id)
    except (ValueError, TypeError, AttributeError):
        raise ValidationError("Invalid product ID format", field="product_id") from None


def split_filters(filters: Sequence[str]) -> CatalogFilters:
    """Split mixed client filters into product types and tags."""
    product_types = {kind.value for kind in ProductType}
    return CatalogFilters(
        types=tuple(f for f in filters if f in product_types),
        tags=tuple(f for f in filters if f not in product_types),
    )


class FeedService:
    """Service for feed and product-session reads."""

    def __init__(
        self,
        catalog: CatalogStore,
        rules: PricingRuleStore,
        profiles: ProfileStore,
        interactions: InteractionStore,
    ) -> None:
        self._catalog = catalog
        self._rules = rules
        self._profiles = profiles
        self._interactions = interactions

    def get_feed(
        self,
        user_id: str,
        filters: CatalogFilters | None,
        cursor: str | None,
        limit: int,
        now: datetime,
    ) -> Page[FeedItem]:
        """Return one page of the user's ranked feed."""
        products = self._catalog.list_active_products(filters)
        if not products:
            return Page(items=[], next_cursor=None)

        product_ids = [product.id for product in products]
        sessions = self._catalog.list_upcoming_sessions(product_ids, now)
        interactions = self._interactions.list_interactions(user_id, product_ids)
        since = now - timedelta(days=booking_setting("COLLABORATIVE_LOOKBACK_DAYS"))
        collaborative = normalize_collaborative_scores(
            self._interactions.co_booking_counts(user_id, since)
        )

        ranked = assemble(
            products=products,
            sessions=sessions,
            interactions=interactions,
            rules=self._rules.list_active_rules(),
            user_skill=self._profiles.get_skill_level(user_id),
            collaborative_scores=collaborative,
            membership=self._profiles.get_active_membership(user_id),
            now=now,
            sessions_per_item=booking_setting("FEED_SESSIONS_PER_ITEM"),
        )
        page = paginate(ranked, cursor, limit)
        logger.debug(
            "Feed for user %s: %s ranked, %s returned", user_id, len(ranked), len(page.items)
        )
        return page

    def get_product_sessions(self, product_id: str, now: datetime) -> list[Session]:
        """Return upcoming sessions of a product at their display price.

        Raises:
            ValidationError: If the product_id is not a valid UUID.
            ProductNotFoundError: If the product does not exist.
        """
        pid = parse_product_id(product_id)
        if self._catalog.get_product(pid) is None:
            raise ProductNotFoundError(product_id)
        rules = self._rules.list_active_rules()
        return [
            price_session(session, rules)
            for session in self._catalog.list_upcoming_sessions([pid], now)
        ]


class InteractionService:
    """Service for appending feed interactions."""

    def __init__(self, catalog: CatalogStore, interactions: InteractionStore) -> None:
        self._catalog = catalog
        self._interactions = interactions

    def log_interaction(
        self, user_id: str, product_id: str, interaction_type: str, now: datetime
    ) -> InteractionEvent:
        """Append an interaction event and return it.

        Raises:
            ValidationError: If the product id or type is malformed.
            ProductNotFoundError: If the product does not exist.
        """
        try:
            kind = InteractionType(interaction_type)
        except ValueError:
            raise ValidationError(
                "Unknown interaction type", field="interaction_type"
            ) from None
        pid = parse_product_id(product_id)
        if self._catalog.get_product(pid) is None:
            raise ProductNotFoundError(product_id)
        return self._interactions.append_interaction(user_id, pid, kind.value, now)
