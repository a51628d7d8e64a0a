"""
Product model - the IAP product whose price Apprien resolves.
"""

from enum import Enum


class ProductType(str, Enum):
    """Store product type, carried through unchanged."""

    CONSUMABLE = "Consumable"
    NON_CONSUMABLE = "NonConsumable"
    SUBSCRIPTION = "Subscription"


class ApprienProduct:
    """
    The IAP product for Apprien.

    ``base_iap_id`` is the store-agnostic id the game knows the product by
    and never changes. ``variant_iap_id`` starts out equal to it and is
    replaced with the Apprien variant (e.g. ``z_pack2_gold.apprien_399_abcd``)
    when a price fetch succeeds. If a fetch fails the product keeps using
    the base id, i.e. the base price.
    """

    def __init__(
        self,
        base_iap_id: str,
        product_type: ProductType = ProductType.CONSUMABLE,
        store: str | None = None,
    ) -> None:
        if not base_iap_id:
            raise ValueError("Base IAP id required")
        self._base_iap_id = base_iap_id
        self._variant_iap_id = base_iap_id
        self.product_type = product_type
        # Store name, e.g. "GooglePlay" or "AppleAppStore". Not used for filtering.
        self.store = store

    @property
    def base_iap_id(self) -> str:
        return self._base_iap_id

    @property
    def variant_iap_id(self) -> str:
        return self._variant_iap_id

    @variant_iap_id.setter
    def variant_iap_id(self, value: str) -> None:
        if not value:
            raise ValueError("Variant IAP id cannot be empty")
        self._variant_iap_id = value

    @property
    def is_resolved(self) -> bool:
        """True when an Apprien variant has replaced the base id."""
        return self._variant_iap_id != self._base_iap_id

    def __repr__(self) -> str:
        return (
            f"ApprienProduct(base_iap_id={self._base_iap_id!r}, "
            f"variant_iap_id={self._variant_iap_id!r}, "
            f"product_type={self.product_type.value!r})"
        )
