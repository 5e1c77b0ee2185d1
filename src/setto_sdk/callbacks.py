"""Callback correlation for Setto payments.

A payment attempt moves through three states::

    Idle -> AwaitingExternalResult -> Resolved

The handler of the attempt in flight sits in a single-slot ``PendingCompletion``
mailbox. It is registered right before the wallet page is opened and is taken
out and invoked exactly once when the wallet redirects back to the app.

When the redirect arrives and nothing is pending (the process was restarted
while the user was in the browser), the result is re-packaged as a
``ForwardedIntent`` and handed to the host application's entry point, which
recovers it with ``extract_result_from_payload``.
"""

from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any, Callable, Mapping, Optional, Union

from .config import ConfigurationStore
from .logging_utils import CorrelationIdContext, get_correlation_id, get_logger
from .types import (
    AMOUNT_KEY,
    CHAIN_ID_KEY,
    ERROR_KEY,
    FROM_ADDRESS_KEY,
    PAYMENT_ID_KEY,
    STATUS_KEY,
    TO_ADDRESS_KEY,
    TOKEN_SYMBOL_KEY,
    TX_ID_KEY,
    ForwardedIntent,
    PaymentResult,
    PaymentStatus,
)
from .utils import split_callback_uri

logger = get_logger(__name__)

CALLBACK_HOST = "callback"
SCHEME_PREFIX = "setto-"
ENTRY_POINT_GROUP = "setto_sdk.entry_points"

CompletionHandler = Callable[[PaymentResult], Any]
EntryPoint = Callable[[ForwardedIntent], Any]


@dataclass(frozen=True)
class PendingEntry:
    handler: CompletionHandler
    attempt_id: Optional[str] = None


class PendingCompletion:
    """Single-slot mailbox for the handler awaiting the next result.

    Holds at most one handler. Putting a new one displaces the old one, whose
    caller is then never called back. Also keeps the last result that could
    not be delivered anywhere.
    """

    def __init__(self):
        self._entry: Optional[PendingEntry] = None
        self._undelivered: Optional[PaymentResult] = None

    @property
    def is_pending(self) -> bool:
        return self._entry is not None

    def put(self, handler: CompletionHandler, attempt_id: Optional[str] = None) -> Optional[PendingEntry]:
        """Occupy the slot, returning the entry it displaced, if any."""
        displaced = self._entry
        self._entry = PendingEntry(handler=handler, attempt_id=attempt_id)
        return displaced

    def take(self) -> Optional[PendingEntry]:
        entry, self._entry = self._entry, None
        return entry

    def stash_undelivered(self, result: PaymentResult) -> None:
        self._undelivered = result

    def pop_undelivered(self) -> Optional[PaymentResult]:
        result, self._undelivered = self._undelivered, None
        return result


def parse_callback_uri(uri: str, return_scheme: Optional[str] = None) -> Optional[PaymentResult]:
    """Build a ``PaymentResult`` from a wallet callback URI.

    Recognised URIs look like ``setto-{merchantId}://callback?status=...`` or
    use the configured ``return_scheme``. Returns None for anything else.
    Missing parameters are left unset; a missing status means cancelled.
    """
    try:
        scheme, host, query = split_callback_uri(uri)
    except ValueError as e:
        logger.debug(f"Ignoring malformed callback URI: {e}")
        return None
    scheme_ok = scheme.startswith(SCHEME_PREFIX) or (
        return_scheme is not None and scheme == return_scheme.lower()
    )
    if not scheme_ok or host != CALLBACK_HOST:
        return None

    return PaymentResult(
        status=PaymentStatus.from_raw(query.get("status")),
        payment_id=query.get("payment_id", query.get("paymentId")),
        tx_hash=query.get("tx_hash", query.get("txId")),
        error=query.get("error"),
        from_address=query.get("from_address"),
        to_address=query.get("to_address"),
        amount=query.get("amount"),
        chain_id=query.get("chain_id"),
        token_symbol=query.get("token_symbol"),
    )


def extract_result_from_payload(
    payload: Union[ForwardedIntent, Mapping[str, Any], None],
) -> Optional[PaymentResult]:
    """Recover a forwarded ``PaymentResult`` on the host's entry point.

    Pure parse; never touches the pending slot. Returns None when the payload
    carries no status, which tells "not a Setto launch" apart from a
    cancelled payment.
    """
    if payload is None:
        return None
    extras = payload.extras if isinstance(payload, ForwardedIntent) else payload

    status = extras.get(STATUS_KEY)
    if status is None:
        return None

    return PaymentResult(
        status=PaymentStatus.from_raw(status),
        tx_hash=extras.get(TX_ID_KEY),
        payment_id=extras.get(PAYMENT_ID_KEY),
        error=extras.get(ERROR_KEY),
        from_address=extras.get(FROM_ADDRESS_KEY),
        to_address=extras.get(TO_ADDRESS_KEY),
        amount=extras.get(AMOUNT_KEY),
        chain_id=extras.get(CHAIN_ID_KEY),
        token_symbol=extras.get(TOKEN_SYMBOL_KEY),
    )


def discover_entry_point() -> Optional[EntryPoint]:
    """Find the host's launcher registered under ``setto_sdk.entry_points``."""
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            return ep.load()
        except (ImportError, AttributeError) as e:
            logger.warning(f"Could not load Setto entry point {ep.name}: {e}")
    return None


class CallbackCorrelationEngine:
    """Matches wallet callbacks back to the payment attempt that opened them."""

    def __init__(
        self,
        store: ConfigurationStore,
        mailbox: Optional[PendingCompletion] = None,
        entry_point: Optional[EntryPoint] = None,
        launcher_resolver: Callable[[], Optional[EntryPoint]] = discover_entry_point,
        on_undeliverable: Optional[CompletionHandler] = None,
    ):
        """Initialize the engine.

        Args:
            store: Configuration store, read for the custom return scheme.
            mailbox: Pending-handler slot; a fresh one if not given.
            entry_point: Explicit cold-start destination for forwarded results.
            launcher_resolver: Fallback lookup used when ``entry_point`` is None.
            on_undeliverable: Called with a result that has nowhere to go.
        """
        self.store = store
        self.mailbox = mailbox if mailbox is not None else PendingCompletion()
        self.entry_point = entry_point
        self.launcher_resolver = launcher_resolver
        self.on_undeliverable = on_undeliverable

    @property
    def is_pending(self) -> bool:
        return self.mailbox.is_pending

    def register(self, handler: CompletionHandler) -> None:
        """Park ``handler`` as the one awaiting the next callback."""
        attempt_id = get_correlation_id()
        displaced = self.mailbox.put(handler, attempt_id)
        if displaced is not None:
            logger.warning(
                f"Payment attempt {displaced.attempt_id or 'unknown'} was superseded "
                f"before its result arrived"
            )
        logger.debug("Awaiting external result")

    def parse(self, uri: str) -> Optional[PaymentResult]:
        config = self.store.config
        return parse_callback_uri(uri, config.return_scheme if config else None)

    def handle_callback(self, uri: str) -> bool:
        """Deliver a wallet callback.

        Returns:
            False if the URI is not a Setto callback (nothing changes),
            True otherwise.
        """
        result = self.parse(uri)
        if result is None:
            logger.debug("Ignoring unrecognized callback URI")
            return False

        entry = self.mailbox.take()
        if entry is None:
            logger.info(f"Callback received with no pending payment: {result.status.value}")
            self.forward(result)
            return True

        with CorrelationIdContext(entry.attempt_id):
            logger.info(f"Callback received: {result.status.value}")
            if result.error is not None:
                logger.info(f"Wallet reported: {result.error_message}")
            entry.handler(result)
        return True

    def resolve_entry_point(self) -> Optional[EntryPoint]:
        if self.entry_point is not None:
            return self.entry_point
        return self.launcher_resolver()

    def forward(self, result: PaymentResult) -> bool:
        """Hand a result over to the host entry point as a fresh launch.

        If no entry point can be found, the result is kept for
        ``pop_undelivered_result`` and ``on_undeliverable`` is notified.
        """
        target = self.resolve_entry_point()
        if target is None:
            logger.warning(
                f"No entry point to forward payment result to; "
                f"keeping it as undelivered (status={result.status.value})"
            )
            self.mailbox.stash_undelivered(result)
            if self.on_undeliverable is not None:
                self.on_undeliverable(result)
            return False

        target(ForwardedIntent.from_result(result))
        return True

    def pop_undelivered_result(self) -> Optional[PaymentResult]:
        return self.mailbox.pop_undelivered()
