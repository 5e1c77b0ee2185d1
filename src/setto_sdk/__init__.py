"""
Setto SDK: hand a payment off to the hosted Setto wallet and get the result back.

The most useful pieces are re-exported here so integrators can
``from setto_sdk import ...`` without navigating the package.
"""

from .api import (
    get_client,
    get_payment_status,
    handle_callback,
    initialize,
    is_initialized,
    open_payment,
    pay,
    reset_client,
    start_payment,
)
from .callbacks import (
    CallbackCorrelationEngine,
    PendingCompletion,
    extract_result_from_payload,
    parse_callback_uri,
)
from .client import SettoClient
from .config import ConfigurationStore, SettoConfig, SettoSettings, load_settings
from .errors import (
    ConfigError,
    MalformedResponseError,
    NetworkError,
    NotInitializedError,
    SettoError,
    SettoErrorCode,
    describe_error,
)
from .logging_utils import setup_logging
from .types import (
    ForwardedIntent,
    PaymentInfo,
    PaymentInfoResponse,
    PaymentRequest,
    PaymentResult,
    PaymentStatus,
    SettoEnvironment,
)

__all__ = (
    "CallbackCorrelationEngine",
    "ConfigError",
    "ConfigurationStore",
    "ForwardedIntent",
    "MalformedResponseError",
    "NetworkError",
    "NotInitializedError",
    "PaymentInfo",
    "PaymentInfoResponse",
    "PaymentRequest",
    "PaymentResult",
    "PaymentStatus",
    "PendingCompletion",
    "SettoClient",
    "SettoConfig",
    "SettoEnvironment",
    "SettoError",
    "SettoErrorCode",
    "SettoSettings",
    "describe_error",
    "extract_result_from_payload",
    "get_client",
    "get_payment_status",
    "handle_callback",
    "initialize",
    "is_initialized",
    "load_settings",
    "open_payment",
    "parse_callback_uri",
    "pay",
    "reset_client",
    "setup_logging",
    "start_payment",
)
