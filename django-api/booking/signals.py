"""Django signals for cache invalidation."""

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from booking.models import PricingRule, Product
from booking.stores import cache_keys


@receiver([post_save, post_delete], sender=Product)
def invalidate_product_cache(sender, instance, **kwargs):
    """Invalidate the active-product list when a product is saved or deleted."""
    cache.delete(cache_keys.ACTIVE_PRODUCTS)


@receiver([post_save, post_delete], sender=PricingRule)
def invalidate_pricing_rule_cache(sender, instance, **kwargs):
    """Invalidate the active-rule list when a pricing rule is saved or deleted."""
    cache.delete(cache_keys.ACTIVE_PRICING_RULES)
