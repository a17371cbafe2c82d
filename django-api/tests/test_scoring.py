"""Unit tests for relevance scoring.

Run with: pytest tests/test_scoring.py -v
"""

from datetime import timedelta

import pytest

from booking.domain import MembershipStatus, SkillLevel
from booking.services import scoring
from tests.builders import NOW, make_interaction, make_membership, make_product, make_session


class TestTimeDecay:
    @pytest.mark.parametrize(
        "age_days,expected",
        [(0, 1.0), (7, 1.0), (8, 0.5), (30, 0.5), (31, 0.2), (90, 0.2), (91, 0.05)],
    )
    def test_decay_buckets(self, age_days, expected):
        assert scoring.time_decay(NOW - timedelta(days=age_days), NOW) == expected


class TestInteractionScore:
    """Tests for weighted, decayed interaction history."""

    def test_book_sixteen_days_ago_counts_half(self):
        product = make_product()
        events = [make_interaction(product, "book", age_days=16)]
        assert scoring.interaction_score(product, events, NOW) == 5.0

    def test_dismiss_is_negative(self):
        product = make_product()
        events = [make_interaction(product, "dismiss", age_days=1)]
        assert scoring.interaction_score(product, events, NOW) == -3.0

    def test_unknown_type_and_other_products_score_zero(self):
        product = make_product()
        other = make_product()
        events = [
            make_interaction(product, "share", age_days=1),
            make_interaction(other, "book", age_days=1),
        ]
        assert scoring.interaction_score(product, events, NOW) == 0.0


class TestSkillMatch:
    """Tests for skill_match_score."""

    def test_exact_match(self):
        assert scoring.skill_match_score(SkillLevel.ADVANCED, ["Advanced"]) == 15

    def test_exact_match_wins_over_adjacent(self):
        assert scoring.skill_match_score(SkillLevel.ADVANCED, ["intermediate", "advanced"]) == 15

    def test_adjacent_level(self):
        assert scoring.skill_match_score(SkillLevel.INTERMEDIATE, ["beginner", "social"]) == 5

    def test_distant_level_scores_zero(self):
        assert scoring.skill_match_score(SkillLevel.BEGINNER, ["advanced"]) == 0

    def test_competitive_maps_to_pro(self):
        assert scoring.skill_match_score(SkillLevel.PRO, ["competitive"]) == 15

    def test_missing_skill_or_tags(self):
        assert scoring.skill_match_score(None, ["beginner"]) == 0
        assert scoring.skill_match_score(SkillLevel.PRO, []) == 0


class TestRecency:
    def test_recency_buckets(self):
        assert scoring.recency_score(make_product(age_days=3), NOW) == 10
        assert scoring.recency_score(make_product(age_days=20), NOW) == 5
        assert scoring.recency_score(make_product(age_days=45), NOW) == 0


class TestUrgency:
    """Tests for urgency_score."""

    def test_almost_full_dominates_starting_soon(self):
        product = make_product()
        session = make_session(product, starts_in=timedelta(hours=6), total=10, remaining=1)
        assert scoring.urgency_score([session], NOW) == 8

    def test_starting_soon(self):
        product = make_product()
        session = make_session(product, starts_in=timedelta(hours=6), remaining=6)
        assert scoring.urgency_score([session], NOW) == 5

    def test_almost_full_later_in_list_still_wins(self):
        product = make_product()
        sessions = [
            make_session(product, starts_in=timedelta(hours=2), remaining=6),
            make_session(product, starts_in=timedelta(days=5), remaining=2),
        ]
        assert scoring.urgency_score(sessions, NOW) == 8

    def test_sold_out_session_is_not_urgent(self):
        product = make_product()
        session = make_session(product, starts_in=timedelta(hours=2), remaining=0)
        assert scoring.urgency_score([session], NOW) == 0

    def test_plenty_of_room_far_away(self):
        product = make_product()
        assert scoring.urgency_score([make_session(product)], NOW) == 0


class TestMembershipAffinity:
    """Tests for membership_affinity_score."""

    def test_active_discount_that_lowers_price(self):
        sessions = [make_session(make_product(), price=2000)]
        assert scoring.membership_affinity_score(make_membership("u1", 10), sessions) == 5

    def test_inactive_membership(self):
        sessions = [make_session(make_product(), price=2000)]
        membership = make_membership("u1", 10, status=MembershipStatus.CANCELLED)
        assert scoring.membership_affinity_score(membership, sessions) == 0

    def test_discount_that_rounds_away(self):
        """1% of 40 cents rounds back to 40, so nothing gets cheaper."""
        sessions = [make_session(make_product(), price=40)]
        assert scoring.membership_affinity_score(make_membership("u1", 1), sessions) == 0

    def test_no_membership(self):
        assert scoring.membership_affinity_score(None, []) == 0


class TestCollaborativeNormalization:
    def test_top_product_scores_ten(self):
        normalized = scoring.normalize_collaborative_scores({"a": 4, "b": 2, "c": 1})
        assert normalized == {"a": 10, "b": 5, "c": 3}

    def test_empty_counts(self):
        assert scoring.normalize_collaborative_scores({}) == {}


class TestScore:
    """Tests for the combined relevance score."""

    def test_terms_are_summed(self):
        product = make_product(tags=("beginner",), age_days=2)
        sessions = [make_session(product)]
        events = [make_interaction(product, "tap", age_days=10)]
        total = scoring.score(
            product,
            sessions,
            events,
            SkillLevel.BEGINNER,
            collaborative_score=7,
            membership=None,
            now=NOW,
        )
        # tap 5 * 0.5 + exact skill 15 + collaborative 7 + recency 10
        assert total == 34.5

    def test_score_is_rounded_to_two_decimals(self):
        product = make_product(age_days=60)
        events = [make_interaction(product, "view", age_days=100)] * 3
        total = scoring.score(product, [], events, None, None, None, NOW)
        assert total == 0.15
