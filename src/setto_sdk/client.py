"""Core Setto Client."""

import asyncio
import webbrowser
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from .callbacks import (
    CallbackCorrelationEngine,
    CompletionHandler,
    EntryPoint,
    PendingCompletion,
    discover_entry_point,
    extract_result_from_payload,
)
from .config import ConfigurationStore, SettoConfig
from .errors import SettoError
from .logging_utils import CorrelationIdContext, get_logger
from .token_exchange import TokenExchangeClient
from .types import ForwardedIntent, PaymentInfoResponse, PaymentRequest, PaymentResult

logger = get_logger(__name__)


def _log_launch_failure(launch: "asyncio.Future[bool]") -> None:
    if launch.cancelled():
        return
    e = launch.exception()
    if e is not None:
        logger.error(f"Could not open the browser: {e}")
    elif launch.result() is False:
        logger.warning("No browser was available to open the payment page")


class SettoClient:
    """Main entry point for Setto SDK.

    Opens the hosted wallet in an external browser and resumes the caller
    when the wallet redirects back. Only one payment may be in flight at a
    time: starting a new one replaces the handler of the previous one, which
    is then never called.
    """

    def __init__(
        self,
        config: Optional[SettoConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        open_url: Optional[Callable[[str], Any]] = None,
        entry_point: Optional[EntryPoint] = None,
        launcher_resolver: Callable[[], Optional[EntryPoint]] = discover_entry_point,
        on_undeliverable: Optional[CompletionHandler] = None,
        mailbox: Optional[PendingCompletion] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize Setto Client.

        Args:
            config: Optional configuration; can also be set later with ``initialize``.
            http_client: HTTP client to use; one is created (and owned) if omitted.
            open_url: Opens a URL in the external browser, called on the event loop.
                If omitted, ``webbrowser.open`` runs in the default executor.
            entry_point: Receives forwarded results on cold start.
            launcher_resolver: Finds an entry point when ``entry_point`` is not given.
            on_undeliverable: Called with a cold-start result that has no entry point.
            mailbox: Pending-handler slot, injectable for tests.
            timeout: HTTP timeout in seconds for an owned client. None waits indefinitely.
        """
        self.store = ConfigurationStore(config)

        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._open_url = open_url

        self.tokens = TokenExchangeClient(self._http)
        self.callbacks = CallbackCorrelationEngine(
            self.store,
            mailbox=mailbox,
            entry_point=entry_point,
            launcher_resolver=launcher_resolver,
            on_undeliverable=on_undeliverable,
        )

    async def close(self):
        """Close the underlying HTTP client if this client created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def initialize(self, config: SettoConfig) -> None:
        """Set the configuration, replacing any previous one."""
        self.store.initialize(config)

    @property
    def is_initialized(self) -> bool:
        return self.store.is_initialized

    async def open_payment(self, request: PaymentRequest, on_complete: CompletionHandler) -> None:
        """Open the wallet page for ``request``.

        ``on_complete`` receives exactly one ``PaymentResult``: FAILED right
        away if the SDK is not initialized or the token exchange fails,
        otherwise whatever the wallet reports back through ``handle_callback``.
        The coroutine returns once the browser launch has been started.

        Args:
            request: The payment to perform.
            on_complete: Called with the result, on the event loop for
                failures and from ``handle_callback`` for wallet results.
        """
        with CorrelationIdContext() as attempt_id:
            config = self.store.config
            if config is None:
                logger.warning("open_payment called before initialize")
                on_complete(PaymentResult.failed("SDK not initialized"))
                return

            logger.info(f"Starting payment {attempt_id} for amount {request.amount}")
            try:
                url = await self.tokens.resolve_payment_url(config, request)
            except SettoError as e:
                logger.error(f"Payment could not be started: {e}")
                on_complete(PaymentResult.failed(str(e)))
                return
            except Exception as e:
                logger.error(f"Unexpected error starting payment: {e}", exc_info=True)
                on_complete(PaymentResult.failed("Network error"))
                return

            # Registered before the browser opens so no callback can beat it
            self.callbacks.register(on_complete)
            self._launch(url)

    def _launch(self, url: str) -> None:
        if self._open_url is not None:
            self._open_url(url)
            return

        # webbrowser.open can block until the browser process starts
        launch = asyncio.get_running_loop().run_in_executor(None, webbrowser.open, url)
        launch.add_done_callback(_log_launch_failure)

    def start_payment(self, request: PaymentRequest, on_complete: CompletionHandler) -> "asyncio.Task[None]":
        """Schedule ``open_payment`` on the running event loop without waiting."""
        return asyncio.get_running_loop().create_task(self.open_payment(request, on_complete))

    async def pay(self, request: PaymentRequest) -> PaymentResult:
        """Open the wallet and wait for the payment result.

        ``handle_callback`` may be called from another thread; the result is
        handed back to this coroutine's event loop. Waits forever if the
        attempt is superseded by another payment.
        """
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[PaymentResult]" = loop.create_future()

        def _resolve(result: PaymentResult) -> None:
            if not future.done():
                future.set_result(result)

        def _on_complete(result: PaymentResult) -> None:
            loop.call_soon_threadsafe(_resolve, result)

        await self.open_payment(request, _on_complete)
        return await future

    async def get_payment_status(self, payment_id: str) -> PaymentInfoResponse:
        """Fetch the server-side status of a payment.

        Failures are reported in the response rather than raised.
        """
        config = self.store.config
        if config is None:
            return PaymentInfoResponse(status="error", error="SDK not initialized")

        try:
            info = await self.tokens.fetch_payment_info(config, payment_id)
        except SettoError as e:
            logger.warning(f"Payment status query for {payment_id} failed: {e}")
            return PaymentInfoResponse(status="error", error=str(e))

        return PaymentInfoResponse(status="success", info=info)

    def handle_callback(self, uri: str) -> bool:
        """Route a deep link received by the host app.

        Returns:
            False if the URI is not a Setto callback, so the host can route
            it elsewhere.
        """
        return self.callbacks.handle_callback(uri)

    @staticmethod
    def extract_result_from_payload(
        payload: Union[ForwardedIntent, Mapping[str, Any], None],
    ) -> Optional[PaymentResult]:
        """Recover a result forwarded to the host entry point on cold start."""
        return extract_result_from_payload(payload)

    def pop_undelivered_result(self) -> Optional[PaymentResult]:
        """Take the last cold-start result that had no entry point to go to."""
        return self.callbacks.pop_undelivered_result()
