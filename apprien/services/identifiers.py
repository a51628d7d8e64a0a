"""
Apprien IAP id helpers.

Variant IAP ids look like ``z_base_iap_id.apprien_500_dfa3``:
- the ``z_`` prefix sorts the variants last in store listings
- followed by the base IAP id
- followed by the ``.apprien_`` separator
- followed by the price in cents
- followed by a 4 character hash
"""

import hashlib
import platform
import uuid
from functools import lru_cache

VARIANT_PREFIX = "z_"
VARIANT_SEPARATOR = ".apprien_"
HASH_LENGTH = 4


def decorate_iap_id(base_iap_id: str, price_cents: int, price_hash: str) -> str:
    """
    Build the variant IAP id Apprien creates for a base product.

    Args:
        base_iap_id: Base IAP id
        price_cents: Price in cents, e.g. 1990 for 19.90 USD
        price_hash: 4 character hash

    Returns:
        Variant IAP id
    """
    if not base_iap_id:
        raise ValueError("Base IAP id required")
    if price_cents < 0:
        raise ValueError(f"Price cannot be negative: {price_cents}")
    if len(price_hash) != HASH_LENGTH:
        raise ValueError(f"Hash must be {HASH_LENGTH} characters: {price_hash!r}")
    return f"{VARIANT_PREFIX}{base_iap_id}{VARIANT_SEPARATOR}{price_cents}_{price_hash}"


def get_base_iap_id(store_iap_id: str) -> str:
    """
    Parse the base IAP id from a store IAP id.

    Ids without the ``.apprien_`` separator are already base ids and are
    returned unchanged.

    Args:
        store_iap_id: IAP id in the store, e.g. ``z_pack2_gold.apprien_399_abcd``

    Returns:
        Base IAP id, e.g. ``pack2_gold``
    """
    separator_position = store_iap_id.find(VARIANT_SEPARATOR)
    # A separator at position 0 leaves no room for a prefixed base id
    if separator_position > 0:
        return store_iap_id[:separator_position][len(VARIANT_PREFIX) :]
    return store_iap_id


def get_apprien_identifier(device_id: str | None = None) -> str:
    """
    Session id sent to Apprien with price requests.

    First byte of the MD5 of the device id as lower-case hex, without
    zero padding (so one or two characters).
    """
    if device_id is None:
        return _default_apprien_identifier()
    digest = hashlib.md5(device_id.encode("ascii", errors="replace")).digest()
    return format(digest[0], "x")


def get_device_unique_identifier() -> str:
    """Stable fingerprint of this machine."""
    return f"{uuid.getnode():012x}-{platform.node()}"


@lru_cache(maxsize=1)
def _default_apprien_identifier() -> str:
    return get_apprien_identifier(get_device_unique_identifier())
