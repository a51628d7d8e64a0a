"""
Apprien Backend Connection.

Talks to the Apprien Game API. Every call is a single request: no retries,
no queuing. Failures never raise out of the public operations, they come
back as result objects (or ``False`` for the checks) so a pricing outage
can never block a purchase.
https://game.apprien.com
"""

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from urllib.parse import quote

from structlog import get_logger

from apprien.config import settings
from apprien.exceptions import (
    ApprienError,
    ConnectionFailureError,
    ProtocolFailureError,
    RequestTimeoutError,
    UnexpectedResponseError,
)
from apprien.models.connection import ConnectionConfig
from apprien.models.product import ApprienProduct
from apprien.models.responses import FetchPriceResult, FetchPricesResult, PostReceiptResult
from apprien.observability.metrics import metrics
from apprien.observability.tracing import add_span_attributes, trace_operation
from apprien.services.time_provider import SystemTimeProvider, TimeProvider
from apprien.services.transport import (
    HttpxTransport,
    RequestOutcome,
    Transport,
    TransportRequest,
)

logger = get_logger(__name__)

# Apprien Game API endpoints, relative to the API base URL
REST_GET_ALL_PRICES_PATH = "/api/v1/stores/{store}/games/{package}/prices"
REST_GET_PRICE_PATH = "/api/v1/stores/{store}/games/{package}/products/{product}/prices"
REST_POST_RECEIPT_PATH = "/api/v1/stores/{store}/games/{package}/receipts"
REST_POST_PRODUCTS_SHOWN_PATH = "/api/v1/stores/{store}/shown/products"
REST_GET_VALIDATE_TOKEN_PATH = "/api/v1/stores/{store}/games/{package}/auth"
REST_GET_APPRIEN_STATUS_PATH = "/status"
REST_POST_ERROR_PATH = "/error"

_OUTCOME_LABELS: dict[type[ApprienError], str] = {
    RequestTimeoutError: "timeout",
    ProtocolFailureError: RequestOutcome.PROTOCOL_ERROR.value,
    ConnectionFailureError: RequestOutcome.CONNECTION_ERROR.value,
}


class ApprienBackendConnection:
    """
    Apprien Game API client.

    Requests are started on the transport and then polled. When the
    configured timeout passes first, the call gives up and reports a
    timeout, but the request itself is left running and its response is
    discarded. Callers that need a real abort must wrap this themselves.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        transport: Transport | None = None,
        time_provider: TimeProvider | None = None,
        poll_interval: float | None = None,
    ) -> None:
        """
        Initialize the backend connection.

        Args:
            config: Connection configuration (package, store, token, timeout)
            transport: HTTP transport, defaults to an httpx based one
            time_provider: Clock for timeouts, defaults to the system clock
            poll_interval: Seconds to sleep between completion checks
        """
        self._config = config
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._time_provider: TimeProvider = time_provider or SystemTimeProvider()
        self._poll_interval = settings.poll_interval if poll_interval is None else poll_interval

        logger.info(
            "apprien_backend_connection_initialized",
            package_name=config.package_name,
            store=config.store_identifier,
            request_timeout=config.request_timeout,
        )

    # ========================================================================
    # Configuration
    # ========================================================================

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def package_name(self) -> str:
        return self._config.package_name

    @property
    def store_identifier(self) -> str:
        return self._config.store_identifier

    @property
    def apprien_identifier(self) -> str:
        return self._config.apprien_identifier

    @property
    def token(self) -> str:
        return self._config.token

    @property
    def request_timeout(self) -> float:
        return self._config.request_timeout

    @request_timeout.setter
    def request_timeout(self, seconds: float) -> None:
        self._config = replace(self._config, request_timeout=seconds)

    def set_token(self, token: str) -> None:
        """Replace the token. Requests already sent keep the old one."""
        self._config = replace(self._config, token=token)
        logger.info("apprien_token_replaced", package_name=self._config.package_name)

    # ========================================================================
    # Request plumbing
    # ========================================================================

    def _url(self, config: ConnectionConfig, path: str, product: str | None = None) -> str:
        return config.api_root + path.format(
            store=config.store_identifier,
            package=config.package_name,
            product=quote(product or "", safe=""),
        )

    @staticmethod
    def _headers(
        config: ConnectionConfig, token: str | None = None, session: bool = False
    ) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {token if token is not None else config.token}"}
        if session:
            headers["Session-Id"] = config.apprien_identifier
        return headers

    async def _wait_for(
        self,
        request: TransportRequest,
        sent_at: float,
        timeout: float | None,
    ) -> None:
        """
        Poll the request until it completes or ``timeout`` seconds pass.

        Raises:
            RequestTimeoutError: Still pending after the timeout
            ProtocolFailureError: The API answered with an error
            ConnectionFailureError: No response was received
        """
        while not request.is_done:
            if timeout is not None and self._time_provider.now() - sent_at > timeout:
                raise RequestTimeoutError(timeout)
            await asyncio.sleep(self._poll_interval)

        if request.outcome is RequestOutcome.PROTOCOL_ERROR:
            raise ProtocolFailureError(request.status_code, request.text)
        if request.outcome is RequestOutcome.CONNECTION_ERROR:
            raise ConnectionFailureError(request.error)

    async def _execute(
        self,
        operation: str,
        action: str,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> TransportRequest:
        """Send a request and wait for it, reporting failures to Apprien."""
        outcome = RequestOutcome.SUCCESS.value

        with trace_operation(
            f"apprien.{operation}",
            http_method=method,
            http_url=url,
            package_name=self._config.package_name,
            store=self._config.store_identifier,
        ) as span:
            # Sent inside the span so httpx spans nest under it
            sent_at = self._time_provider.now()
            request = self._transport.send(method, url, headers=headers, data=data)

            try:
                await self._wait_for(request, sent_at, timeout)
                return request
            except ApprienError as exc:
                outcome = _OUTCOME_LABELS.get(type(exc), "error")
                if isinstance(exc, RequestTimeoutError):
                    logger.warning(
                        "apprien_request_timeout", operation=operation, url=url, timeout=timeout
                    )
                else:
                    logger.error(
                        "apprien_request_failed",
                        operation=operation,
                        method=method,
                        url=url,
                        status=request.status_code,
                        error=str(exc),
                    )
                    self.send_error(request.status_code, f"Error occurred while {action}. {exc}")
                raise
            finally:
                add_span_attributes(span, outcome=outcome, http_status_code=request.status_code)
                metrics.record_request(operation, outcome, self._time_provider.now() - sent_at)

    def _require_ok(self, request: TransportRequest, action: str) -> None:
        """Treat anything but HTTP 200 as a failed fetch."""
        if request.status_code != 200:
            logger.warning(
                "apprien_unexpected_response",
                status=request.status_code,
                body=request.text[:200],
            )
            self.send_error(
                request.status_code, f"Error occurred while {action}. Error: {request.text}"
            )
            raise UnexpectedResponseError(request.status_code, request.text)

    def send_error(self, status_code: int | None, message: str) -> None:
        """
        Report an SDK problem to Apprien.

        Fire-and-forget: the request is not awaited and its failure is not
        surfaced anywhere.
        """
        config = self._config
        params = {
            "message": message,
            "responseCode": str(status_code or 0),
            "storeGame": config.package_name,
            "store": config.store_identifier,
        }
        try:
            self._transport.send("POST", config.api_root + REST_POST_ERROR_PATH, params=params)
        except Exception as exc:
            logger.warning("apprien_error_report_failed", error=str(exc))
            return
        metrics.record_error_report(status_code)

    # ========================================================================
    # Operations
    # ========================================================================

    async def fetch_prices(self) -> FetchPricesResult:
        """
        Fetch all Apprien variant IAP ids of the game.

        Prices live in the variant IAP ids; the store plugin looks up the
        actual prices by variant id. The body is returned unparsed.
        """
        config = self._config
        action = "fetching Apprien prices"

        try:
            request = await self._execute(
                "fetch_prices",
                action,
                "GET",
                self._url(config, REST_GET_ALL_PRICES_PATH),
                headers=self._headers(config, session=True),
                timeout=config.request_timeout,
            )
            self._require_ok(request, action)
        except ApprienError as exc:
            return FetchPricesResult(success=False, error_message=str(exc))

        logger.info(
            "apprien_prices_fetched", package_name=config.package_name, size=len(request.text)
        )
        return FetchPricesResult(success=True, json=request.text)

    async def fetch_price(self, product: ApprienProduct) -> FetchPriceResult:
        """
        Fetch the Apprien variant IAP id of a single product.

        Prefer ``fetch_prices`` when pricing several products, it needs one
        request in total.
        """
        config = self._config
        action = f"fetching Apprien price for {product.base_iap_id}"

        try:
            request = await self._execute(
                "fetch_price",
                action,
                "GET",
                self._url(config, REST_GET_PRICE_PATH, product.base_iap_id),
                headers=self._headers(config, session=True),
                timeout=config.request_timeout,
            )
            self._require_ok(request, action)
        except ApprienError as exc:
            return FetchPriceResult(success=False, error_message=str(exc))

        logger.info(
            "apprien_price_fetched",
            base_iap_id=product.base_iap_id,
            variant_iap_id=request.text,
        )
        return FetchPriceResult(success=True, variant_id=request.text)

    async def post_receipt(
        self,
        receipt_json: str,
        callback: Callable[[PostReceiptResult], None] | None = None,
    ) -> PostReceiptResult:
        """
        Post a purchase receipt so Apprien can calculate new prices.

        Waits for the response without a timeout.

        Args:
            receipt_json: Receipt from the store purchase
            callback: Called with the result once the post has finished
        """
        config = self._config

        try:
            request = await self._execute(
                "post_receipt",
                "posting receipt",
                "POST",
                self._url(config, REST_POST_RECEIPT_PATH),
                headers=self._headers(config),
                data={"deal=receipt": receipt_json},
            )
            result = PostReceiptResult(status_code=request.status_code, body=request.text)
        except ProtocolFailureError as exc:
            result = PostReceiptResult(
                status_code=exc.status_code, body=exc.body, error_message=str(exc)
            )
        except ConnectionFailureError as exc:
            result = PostReceiptResult(status_code=None, error_message=str(exc))

        logger.info("apprien_receipt_posted", status=result.status_code, success=result.success)
        if callback is not None:
            callback(result)
        return result

    async def notify_products_shown(self, products: Sequence[ApprienProduct]) -> None:
        """
        Tell Apprien which products were shown to the player.

        Apprien needs this to price correctly. Errors are logged and
        reported, never raised.
        """
        config = self._config
        form = {f"iap_ids[{i}]": product.variant_iap_id for i, product in enumerate(products)}

        try:
            await self._execute(
                "products_shown",
                "posting products shown",
                "POST",
                self._url(config, REST_POST_PRODUCTS_SHOWN_PATH),
                headers=self._headers(config),
                data=form,
            )
        except ApprienError:
            return

        logger.debug("apprien_products_shown_posted", count=len(form))

    async def check_service_status(self) -> bool:
        """Check whether the Apprien API is online."""
        config = self._config
        try:
            await self._execute(
                "check_service_status",
                "checking Apprien status",
                "GET",
                config.api_root + REST_GET_APPRIEN_STATUS_PATH,
                timeout=config.request_timeout,
            )
        except ApprienError:
            return False
        return True

    async def check_token_validity(self, token: str | None = None) -> bool:
        """
        Validate a token with the Apprien API.

        Args:
            token: Token to test, defaults to the configured one
        """
        config = self._config
        try:
            await self._execute(
                "check_token_validity",
                "validating token",
                "GET",
                self._url(config, REST_GET_VALIDATE_TOKEN_PATH),
                headers=self._headers(config, token=token),
                timeout=config.request_timeout,
            )
        except ApprienError:
            return False
        return True

    async def test_connection(self) -> tuple[bool, bool]:
        """
        Check service availability and token validity together.

        Returns:
            (service available, token valid)
        """
        available, valid = await asyncio.gather(
            self.check_service_status(),
            self.check_token_validity(),
        )
        logger.info("apprien_connection_tested", available=available, token_valid=valid)
        return available, valid

    async def aclose(self) -> None:
        """Close the transport if this connection created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()
