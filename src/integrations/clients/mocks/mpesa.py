"""
M-Pesa MOCK client.

⚠️  This is a mock implementation for development and testing.
    It never touches the network. Raw gateway bodies are fabricated and then
    pushed through the same normalizers as the real client, so callers see the
    exact envelope and error shapes they will get in production.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from src.integrations.contracts.error_codes import MPESA_ERROR_MESSAGES, SUCCESS_CODE
from src.integrations.contracts.interfaces import (
    B2BArgs,
    B2CArgs,
    C2BArgs,
    MpesaGateway,
    OperationArgs,
    OperationKind,
    QueryArgs,
    ReversalArgs,
)
from src.integrations.contracts.payments import format_amount, to_decimal, validate_operation_args
from src.integrations.policy.error_wrappers import raise_for_business_failure, raise_for_invalid_arguments
from src.integrations.policy.response_wrappers import MpesaResponse, normalize_success_response

logger = logging.getLogger(__name__)

_DEFAULT_FEE = Decimal("0.00")


@dataclass
class _MockTransaction:
    kind: OperationKind
    transaction_id: str
    conversation_id: str
    third_party_reference: str
    amount: Decimal
    status: str = "Completed"


class MpesaMockClient(MpesaGateway):
    """
    Mock M-Pesa gateway.

    Parameters
    ----------
    fail_with : str, optional
        When set, every money-moving call fails with this INS-* code
        (e.g. "INS-2006" for insufficient balance).
    fee : Decimal
        Deducted from B2C/B2B amounts to produce the settlement amount.
    recipient_name : tuple of str
        First and last name reported for B2C recipients.
    """

    def __init__(
        self,
        fail_with: Optional[str] = None,
        fee: Decimal = _DEFAULT_FEE,
        recipient_name: Tuple[str, str] = ("Test", "Customer"),
    ):
        self._fail_with = fail_with
        self._fee = Decimal(fee)
        self._recipient_name = recipient_name

        # In-memory store (reset on restart), keyed by every known reference
        self._transactions: Dict[str, _MockTransaction] = {}

        logger.info("[MPESA MOCK] Client initialised (fail_with=%s)", fail_with or "-")

    # ------------------------------------------------------------------
    # Money-moving operations
    # ------------------------------------------------------------------

    async def c2b(self, args: C2BArgs) -> MpesaResponse:
        return self._transfer(OperationKind.C2B, args, args.amount)

    async def b2c(self, args: B2CArgs) -> MpesaResponse:
        first, last = self._recipient_name
        return self._transfer(OperationKind.B2C, args, args.amount, {
            "output_RecipientFirstName": first,
            "output_RecipientLastName": last,
        })

    async def b2b(self, args: B2BArgs) -> MpesaResponse:
        return self._transfer(OperationKind.B2B, args, args.amount)

    async def reversal(self, args: ReversalArgs) -> MpesaResponse:
        self._validate(OperationKind.REVERSAL, args)
        original = self._transactions.get(args.original_transaction_id)
        if original is None or original.status == "Reversed":
            logger.info("[MPESA MOCK] Reversal target %s not found", args.original_transaction_id)
            raise_for_business_failure(
                self._raw("INS-18", third_party_reference=args.third_party_reference),
                OperationKind.REVERSAL.value,
            )
        if to_decimal(args.reversal_amount) > original.amount:
            logger.info("[MPESA MOCK] Reversal amount exceeds original %s", args.original_transaction_id)
            raise_for_business_failure(
                self._raw("INS-15", third_party_reference=args.third_party_reference),
                OperationKind.REVERSAL.value,
            )
        self._check_forced_failure(OperationKind.REVERSAL, args)

        original.status = "Reversed"
        raw = self._raw(
            SUCCESS_CODE,
            transaction_id=self._new_id("REV"),
            conversation_id=self._new_id("CONV"),
            third_party_reference=args.third_party_reference,
        )
        logger.info("[MPESA MOCK] Transaction %s reversed", args.original_transaction_id)
        return normalize_success_response(raw, OperationKind.REVERSAL, args)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def query(self, args: QueryArgs) -> MpesaResponse:
        self._validate(OperationKind.QUERY, args)
        txn = self._transactions.get(args.query_reference)

        if txn is None:
            # Unknown reference: report Pending so callers can poll again
            raw = self._raw(SUCCESS_CODE, third_party_reference=args.third_party_reference)
            raw["output_ResponseTransactionStatus"] = "Pending"
        else:
            raw = self._raw(
                SUCCESS_CODE,
                transaction_id=txn.transaction_id,
                conversation_id=txn.conversation_id,
                third_party_reference=args.third_party_reference,
            )
            raw["output_ResponseTransactionStatus"] = txn.status
        return normalize_success_response(raw, OperationKind.QUERY, args)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transfer(
        self,
        kind: OperationKind,
        args: OperationArgs,
        amount: Any,
        extra: Optional[Dict[str, str]] = None,
    ) -> MpesaResponse:
        self._validate(kind, args)
        self._check_forced_failure(kind, args)

        txn = _MockTransaction(
            kind=kind,
            transaction_id=self._new_id(kind.value),
            conversation_id=self._new_id("CONV"),
            third_party_reference=args.third_party_reference,
            amount=to_decimal(amount),
        )
        for key in (txn.transaction_id, txn.conversation_id, txn.third_party_reference):
            self._transactions[key] = txn

        raw = self._raw(
            SUCCESS_CODE,
            transaction_id=txn.transaction_id,
            conversation_id=txn.conversation_id,
            third_party_reference=txn.third_party_reference,
        )
        if kind in (OperationKind.B2C, OperationKind.B2B):
            raw["output_SettlementAmount"] = format_amount(txn.amount - self._fee)
        raw.update(extra or {})

        logger.info("[MPESA MOCK] %s %s amount=%s", kind.value, txn.transaction_id, format_amount(txn.amount))
        return normalize_success_response(raw, kind, args)

    def _validate(self, kind: OperationKind, args: OperationArgs) -> None:
        issues = validate_operation_args(args)
        if issues:
            raise_for_invalid_arguments(issues, kind.value)

    def _check_forced_failure(self, kind: OperationKind, args: OperationArgs) -> None:
        if self._fail_with:
            raise_for_business_failure(
                self._raw(self._fail_with, third_party_reference=args.third_party_reference),
                kind.value,
            )

    def _raw(self, code: str, **ids: str) -> Dict[str, str]:
        raw = {
            "output_ResponseCode": code,
            "output_ResponseDesc": MPESA_ERROR_MESSAGES.get(code, "Mock failure"),
        }
        keys = {
            "transaction_id": "output_TransactionID",
            "conversation_id": "output_ConversationID",
            "third_party_reference": "output_ThirdPartyReference",
        }
        for name, value in ids.items():
            raw[keys[name]] = value
        return raw

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex[:10].upper()}"
