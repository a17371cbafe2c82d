"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

from datetime import time
from decimal import Decimal

import pytest
from django.core.cache import cache

from booking import models as orm
from booking.stores import cache_keys
from booking.stores.django_store import DjangoCatalogStore
from tests.builders import create_product_row


@pytest.mark.django_db
class TestCatalogCache:
    """Tests for cached catalog reads."""

    def test_active_products_are_cached(self, django_assert_num_queries):
        create_product_row("Clinic")
        store = DjangoCatalogStore()
        store.list_active_products()
        with django_assert_num_queries(0):
            products = store.list_active_products()
        assert [p.title for p in products] == ["Clinic"]
        assert cache.get(cache_keys.ACTIVE_PRODUCTS) is not None

    def test_rules_are_cached_in_position_order(self, django_assert_num_queries):
        orm.PricingRule.objects.create(
            name="b", rule_type="peak", multiplier=Decimal("1.2"), position=2
        )
        orm.PricingRule.objects.create(
            name="a",
            rule_type="off_peak",
            multiplier=Decimal("0.8"),
            position=1,
            start_time=time(6, 0),
        )
        store = DjangoCatalogStore()
        rules = store.list_active_rules()
        assert [r.name for r in rules] == ["a", "b"]
        assert rules[0].start_time == "06:00"
        with django_assert_num_queries(0):
            store.list_active_rules()


@pytest.mark.django_db
class TestCacheInvalidation:
    """Tests for cache invalidation on model changes."""

    def test_product_save_invalidates_product_cache(self):
        """Saving a product invalidates the active-product list."""
        row = create_product_row("Old title")
        DjangoCatalogStore().list_active_products()

        row.title = "New title"
        row.save()

        assert cache.get(cache_keys.ACTIVE_PRODUCTS) is None
        assert [p.title for p in DjangoCatalogStore().list_active_products()] == ["New title"]

    def test_product_delete_invalidates_product_cache(self):
        row = create_product_row()
        DjangoCatalogStore().list_active_products()
        row.delete()
        assert DjangoCatalogStore().list_active_products() == []

    def test_rule_save_invalidates_rule_cache(self):
        """Saving a pricing rule invalidates the active-rule list."""
        DjangoCatalogStore().list_active_rules()
        orm.PricingRule.objects.create(name="surge", rule_type="surge", multiplier=Decimal("2"))
        assert cache.get(cache_keys.ACTIVE_PRICING_RULES) is None
        assert len(DjangoCatalogStore().list_active_rules()) == 1
