"""Pydantic models for Setto SDK."""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .errors import SettoErrorCode, describe_error

# Forwarded-intent key namespace (cold-start hand-off to the host entry point)
STATUS_KEY = "setto_payment_status"
TX_ID_KEY = "setto_payment_txId"
PAYMENT_ID_KEY = "setto_payment_paymentId"
ERROR_KEY = "setto_payment_error"
FROM_ADDRESS_KEY = "setto_payment_fromAddress"
TO_ADDRESS_KEY = "setto_payment_toAddress"
AMOUNT_KEY = "setto_payment_amount"
CHAIN_ID_KEY = "setto_payment_chainId"
TOKEN_SYMBOL_KEY = "setto_payment_tokenSymbol"


class SettoEnvironment(str, Enum):
    """Hosted wallet environment."""

    DEV = "dev"
    PROD = "prod"

    @property
    def base_url(self) -> str:
        if self is SettoEnvironment.DEV:
            return "https://dev-wallet.settopay.com"
        return "https://wallet.settopay.com"

    @classmethod
    def parse(cls, value: Any) -> "SettoEnvironment":
        """Parse ``dev``/``development``/``prod``/``production`` (any case)."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("dev", "development"):
            return cls.DEV
        if normalized in ("prod", "production"):
            return cls.PROD
        raise ValueError(f"Unknown Setto environment: {value!r}")


class PaymentStatus(str, Enum):
    """Terminal status of a payment attempt."""

    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "PaymentStatus":
        """Map a raw callback status string to a status.

        Only ``success`` and ``failed`` are recognised; everything else,
        including a missing value, is a cancellation.
        """
        if value == "success":
            return cls.SUCCESS
        if value == "failed":
            return cls.FAILED
        return cls.CANCELLED


class PaymentRequest(BaseModel):
    """A single payment attempt requested by the host application."""

    amount: str = Field(description="Decimal amount, e.g. '100.00'")
    order_id: Optional[str] = Field(default=None, description="Merchant order/reference id")
    idp_token: Optional[str] = Field(default=None, description="Identity-provider token for auto-login")
    currency: Optional[str] = Field(default=None, description="Currency code, wallet default if unset")

    model_config = {"frozen": True}

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, value: Any) -> str:
        text = str(value).strip()
        try:
            parsed = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"amount must be a decimal string, got {value!r}") from exc
        if not parsed.is_finite() or parsed <= 0:
            raise ValueError("amount must be greater than zero")
        return text


class PaymentResult(BaseModel):
    """Outcome of a payment attempt as reported back by the wallet page."""

    status: PaymentStatus
    payment_id: Optional[str] = None
    tx_hash: Optional[str] = None
    error: Optional[str] = None

    # Settlement details, present only when the wallet includes them
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    amount: Optional[str] = None
    chain_id: Optional[int] = None
    token_symbol: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("chain_id", mode="before")
    @classmethod
    def _lenient_chain_id(cls, value: Any) -> Optional[int]:
        if value is None or isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return None

    @property
    def tx_id(self) -> Optional[str]:
        return self.tx_hash

    @property
    def error_code(self) -> Optional[SettoErrorCode]:
        """Wallet error code carried in ``error``, if any."""
        if self.error is None:
            return None
        return SettoErrorCode.from_code(self.error)

    @property
    def error_message(self) -> Optional[str]:
        """Human-readable form of ``error``; unknown codes come back as-is."""
        if self.error is None:
            return None
        return describe_error(self.error)

    @classmethod
    def failed(cls, message: str) -> "PaymentResult":
        return cls(status=PaymentStatus.FAILED, error=message)


class PaymentInfo(BaseModel):
    """Server-side view of a payment, returned by the status query."""

    payment_id: str
    status: str
    amount: str
    currency: str
    tx_hash: Optional[str] = None
    created_at: int
    completed_at: Optional[int] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        return value


class PaymentInfoResponse(BaseModel):
    """Response from querying a payment's status."""

    status: Literal["success", "error"]
    info: Optional[PaymentInfo] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class ForwardedIntent(BaseModel):
    """Payment result re-packaged for delivery to the host entry point.

    Used when a callback arrives and no handler is pending in this process.
    The host launches fresh with the task stack cleared and reads ``extras``.
    """

    extras: Dict[str, str] = Field(default_factory=dict)
    new_task: bool = True
    clear_top: bool = True

    model_config = {"frozen": True}

    @classmethod
    def from_result(cls, result: PaymentResult) -> "ForwardedIntent":
        fields = {
            STATUS_KEY: result.status.value,
            TX_ID_KEY: result.tx_hash,
            PAYMENT_ID_KEY: result.payment_id,
            ERROR_KEY: result.error,
            FROM_ADDRESS_KEY: result.from_address,
            TO_ADDRESS_KEY: result.to_address,
            AMOUNT_KEY: result.amount,
            CHAIN_ID_KEY: None if result.chain_id is None else str(result.chain_id),
            TOKEN_SYMBOL_KEY: result.token_symbol,
        }
        return cls(extras={k: v for k, v in fields.items() if v is not None})
