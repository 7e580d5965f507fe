from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from src.integrations.policy.response_wrappers import (
        B2BResponseData,
        B2CResponseData,
        C2BResponseData,
        MpesaResponse,
        QueryResponseData,
        ReversalResponseData,
    )


Amount = Union[int, float, Decimal, str]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OperationKind(str, Enum):
    C2B = "C2B"
    B2C = "B2C"
    B2B = "B2B"
    QUERY = "QUERY"
    REVERSAL = "REVERSAL"


# ---------------------------------------------------------------------------
# Operation arguments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class C2BArgs:
    amount: Amount
    number: str                          # customer MSISDN, e.g. 258841234567
    transaction_reference: str
    third_party_reference: str


@dataclass(frozen=True)
class B2CArgs:
    amount: Amount
    number: str                          # recipient MSISDN
    transaction_reference: str
    third_party_reference: str
    payment_services: str = "BusinessPayBill"


@dataclass(frozen=True)
class B2BArgs:
    amount: Amount
    primary_party_code: str              # sending business shortcode
    recipient_party_code: str            # receiving business shortcode
    transaction_reference: str
    third_party_reference: str
    payment_services: str = "BusinessToBusinessTransfer"


@dataclass(frozen=True)
class QueryArgs:
    query_reference: str                 # transaction id or conversation id
    third_party_reference: str


@dataclass(frozen=True)
class ReversalArgs:
    original_transaction_id: str
    reversal_amount: Amount
    third_party_reference: str


OperationArgs = Union[C2BArgs, B2CArgs, B2BArgs, QueryArgs, ReversalArgs]


# ---------------------------------------------------------------------------
# Abstract gateway interface
# ---------------------------------------------------------------------------

class MpesaGateway(ABC):
    """Every M-Pesa client (real or mock) must implement this interface.

    Each coroutine returns a success envelope or raises ``MpesaError``.
    """

    @abstractmethod
    async def c2b(self, args: C2BArgs) -> "MpesaResponse[C2BResponseData]":
        """Collect money from a customer wallet into the business account."""

    @abstractmethod
    async def b2c(self, args: B2CArgs) -> "MpesaResponse[B2CResponseData]":
        """Pay out from the business account to a customer wallet."""

    @abstractmethod
    async def b2b(self, args: B2BArgs) -> "MpesaResponse[B2BResponseData]":
        """Transfer between two business shortcodes."""

    @abstractmethod
    async def query(self, args: QueryArgs) -> "MpesaResponse[QueryResponseData]":
        """Look up the status of an earlier transaction. Safe to repeat."""

    @abstractmethod
    async def reversal(self, args: ReversalArgs) -> "MpesaResponse[ReversalResponseData]":
        """Reverse a completed transaction, fully or partially."""
