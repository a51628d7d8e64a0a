"""
Apprien Manager - resolves Apprien price variants for IAP products.

Apprien is an automated pricing engine that calculates optimum prices
per country. The manager fetches the Apprien variant IAP ids and writes
them onto the game's products. Whatever goes wrong, products keep their
base IAP ids so purchases always work at the base price.
"""

from collections.abc import Callable, Sequence

from structlog import get_logger

from apprien.config import settings
from apprien.exceptions import PriceParseError
from apprien.models.api import parse_price_variants
from apprien.models.connection import ConnectionConfig, IntegrationType
from apprien.models.product import ApprienProduct
from apprien.models.responses import FetchPriceResult, FetchPricesResult, PostReceiptResult
from apprien.observability.logging import log_context
from apprien.observability.metrics import metrics
from apprien.services.backend_connection import ApprienBackendConnection
from apprien.services.identifiers import get_apprien_identifier
from apprien.services.time_provider import TimeProvider
from apprien.services.transport import Transport

logger = get_logger(__name__)


class ApprienManager:
    """
    Apprien SDK entry point for games.

    Usage:
        manager = ApprienManager.create(
            "com.example.game", IntegrationType.GOOGLE_PLAY_STORE, token
        )
        products = catalog.load()
        await manager.fetch_apprien_prices(products)
        # products[i].variant_iap_id is now the id to look prices up with
    """

    def __init__(self, backend: ApprienBackendConnection) -> None:
        self._backend = backend

    @classmethod
    def create(
        cls,
        package_name: str,
        integration_type: IntegrationType,
        token: str,
        *,
        transport: Transport | None = None,
        time_provider: TimeProvider | None = None,
    ) -> "ApprienManager":
        """
        Build a manager with a backend connection configured from settings.

        Args:
            package_name: Game package name, e.g. 'com.example.game'
            integration_type: Store to integrate against
            token: Token from the Apprien Dashboard
        """
        config = ConnectionConfig(
            package_name=package_name,
            token=token,
            integration_type=integration_type,
            apprien_identifier=get_apprien_identifier(),
            api_base_url=settings.api_base_url,
            request_timeout=settings.request_timeout,
        )
        backend = ApprienBackendConnection(
            config,
            transport=transport,
            time_provider=time_provider,
        )
        return cls(backend)

    @property
    def backend(self) -> ApprienBackendConnection:
        return self._backend

    def set_token(self, token: str) -> None:
        """Replace the token given at construction. Mostly useful for tooling."""
        self._backend.set_token(token)

    def set_request_timeout(self, seconds: float) -> None:
        """Set the timeout for price requests."""
        self._backend.request_timeout = seconds

    async def fetch_apprien_prices(self, products: Sequence[ApprienProduct]) -> FetchPricesResult:
        """
        Fetch and apply Apprien variant IAP ids for all given products.

        Products are matched by base IAP id; if several share one, the last
        one gets the variant. Variants for unknown products are ignored.
        On any failure the products are left as they were.

        Returns:
            The fetch result, for the caller to branch on
        """
        lookup = {product.base_iap_id: product for product in products}

        with log_context(
            package_name=self._backend.package_name, store=self._backend.store_identifier
        ):
            response = await self._backend.fetch_prices()

            if not response.success or response.json is None:
                logger.info(
                    "apprien_prices_unavailable",
                    products=len(lookup),
                    error=response.error_message,
                )
                return response

            try:
                variants = parse_price_variants(response.json)
            except PriceParseError as exc:
                # Products keep their base IAP ids
                logger.warning("apprien_prices_unparseable", error=str(exc))
                metrics.record_parse_failure()
                return response

            applied = 0
            for entry in variants.products:
                product = lookup.get(entry.base)
                if product is None or not entry.variant:
                    continue
                product.variant_iap_id = entry.variant
                applied += 1

            metrics.record_variants_applied(applied)
            logger.info(
                "apprien_prices_applied",
                products=len(lookup),
                variants=len(variants.products),
                applied=applied,
            )

        return response

    async def fetch_apprien_price(self, product: ApprienProduct) -> FetchPriceResult:
        """
        Fetch and apply the Apprien variant IAP id of one product.

        Use ``fetch_apprien_prices`` for several products to save requests.
        """
        response = await self._backend.fetch_price(product)

        if response.success and response.variant_id:
            product.variant_iap_id = response.variant_id
            metrics.record_variants_applied(1)

        return response

    async def post_receipt(
        self,
        receipt_json: str,
        callback: Callable[[PostReceiptResult], None] | None = None,
    ) -> PostReceiptResult:
        """Post the receipt of a successful purchase to Apprien."""
        return await self._backend.post_receipt(receipt_json, callback)

    async def products_shown(self, products: Sequence[ApprienProduct]) -> None:
        """Tell Apprien these products were shown to the player."""
        await self._backend.notify_products_shown(products)

    async def check_service_status(self) -> bool:
        """Check whether the Apprien API is online."""
        return await self._backend.check_service_status()

    async def check_token_validity(self, token: str | None = None) -> bool:
        """Validate the given token, or the configured one."""
        return await self._backend.check_token_validity(token)

    async def test_connection(self) -> tuple[bool, bool]:
        """Return (service available, token valid)."""
        return await self._backend.test_connection()

    async def aclose(self) -> None:
        await self._backend.aclose()

    async def __aenter__(self) -> "ApprienManager":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.aclose()
