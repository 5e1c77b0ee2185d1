"""
Module-level helpers backed by one process-wide ``SettoClient``.

Integrators that do not want to pass a client around can call
``setto_sdk.initialize(...)`` once and use the functions below.
"""

from typing import Optional

from .callbacks import CompletionHandler, extract_result_from_payload
from .client import SettoClient
from .config import SettoConfig
from .types import PaymentInfoResponse, PaymentRequest, PaymentResult

__all__ = [
    "extract_result_from_payload",
    "get_client",
    "get_payment_status",
    "handle_callback",
    "initialize",
    "is_initialized",
    "open_payment",
    "pay",
    "reset_client",
    "start_payment",
]

_client: Optional[SettoClient] = None


def get_client() -> SettoClient:
    """Return the default client, creating it on first use."""
    global _client
    if _client is None:
        _client = SettoClient()
    return _client


def reset_client(client: Optional[SettoClient] = None) -> None:
    """Replace the default client (``None`` drops it)."""
    global _client
    _client = client


def initialize(config: SettoConfig) -> None:
    get_client().initialize(config)


def is_initialized() -> bool:
    return _client is not None and _client.is_initialized


async def open_payment(request: PaymentRequest, on_complete: CompletionHandler) -> None:
    await get_client().open_payment(request, on_complete)


def start_payment(request: PaymentRequest, on_complete: CompletionHandler):
    return get_client().start_payment(request, on_complete)


async def pay(request: PaymentRequest) -> PaymentResult:
    return await get_client().pay(request)


async def get_payment_status(payment_id: str) -> PaymentInfoResponse:
    return await get_client().get_payment_status(payment_id)


def handle_callback(uri: str) -> bool:
    return get_client().handle_callback(uri)
