"""
Apprien SDK - dynamic IAP pricing for games.
"""

from apprien.models.catalog import (
    CatalogItem,
    ProductCatalogAdapter,
    StaticProductCatalog,
    products_from_catalog,
)
from apprien.models.connection import ConnectionConfig, IntegrationType
from apprien.models.product import ApprienProduct, ProductType
from apprien.models.responses import FetchPriceResult, FetchPricesResult, PostReceiptResult
from apprien.services.backend_connection import ApprienBackendConnection
from apprien.services.identifiers import decorate_iap_id, get_apprien_identifier, get_base_iap_id
from apprien.services.price_manager import ApprienManager

__all__ = [
    "ApprienBackendConnection",
    "ApprienManager",
    "ApprienProduct",
    "CatalogItem",
    "ConnectionConfig",
    "FetchPriceResult",
    "FetchPricesResult",
    "IntegrationType",
    "PostReceiptResult",
    "ProductCatalogAdapter",
    "ProductType",
    "StaticProductCatalog",
    "decorate_iap_id",
    "get_apprien_identifier",
    "get_base_iap_id",
    "products_from_catalog",
]
