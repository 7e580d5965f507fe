"""
M-Pesa operation descriptors.

One ``OperationSpec`` per gateway operation: where it is posted, whether it
carries ``X-Api-Key``, and how its wire payload is built. Field names and their
casing are the gateway's contract (C2B sends ``input_CustomerMSISDN`` while B2C
sends ``input_CustomerMsisdn``) and must be kept exactly as they are.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict

from src.integrations.contracts.interfaces import (
    B2BArgs,
    B2CArgs,
    C2BArgs,
    OperationKind,
    QueryArgs,
    ReversalArgs,
)
from src.integrations.contracts.payments import format_amount
from src.utils.config_loader import MpesaConfig

PayloadBuilder = Callable[[Any, MpesaConfig], Dict[str, str]]


@dataclass(frozen=True)
class OperationSpec:
    kind: OperationKind
    path: str
    send_api_key: bool
    build_payload: PayloadBuilder

    @property
    def label(self) -> str:
        return self.kind.value


def _c2b_payload(args: C2BArgs, config: MpesaConfig) -> Dict[str, str]:
    return {
        "input_Amount": format_amount(args.amount),
        "input_CustomerMSISDN": args.number,
        "input_TransactionReference": args.transaction_reference,
        "input_ThirdPartyReference": args.third_party_reference,
        "input_ServiceProviderCode": config.service_provider_code,
    }


def _b2c_payload(args: B2CArgs, config: MpesaConfig) -> Dict[str, str]:
    return {
        "input_Amount": format_amount(args.amount),
        "input_CustomerMsisdn": args.number,
        "input_TransactionReference": args.transaction_reference,
        "input_ThirdPartyReference": args.third_party_reference,
        "input_ServiceProviderCode": config.service_provider_code,
        "input_PaymentServices": args.payment_services,
    }


def _b2b_payload(args: B2BArgs, config: MpesaConfig) -> Dict[str, str]:
    return {
        "input_Amount": format_amount(args.amount),
        "input_PrimaryPartyCode": args.primary_party_code,
        "input_RecipientPartyCode": args.recipient_party_code,
        "input_TransactionReference": args.transaction_reference,
        "input_ThirdPartyReference": args.third_party_reference,
        "input_ServiceProviderCode": config.service_provider_code,
        "input_PaymentServices": args.payment_services,
    }


def _query_payload(args: QueryArgs, config: MpesaConfig) -> Dict[str, str]:
    return {
        "input_QueryReference": args.query_reference,
        "input_ServiceProviderCode": config.service_provider_code,
        "input_ThirdPartyReference": args.third_party_reference,
    }


def _reversal_payload(args: ReversalArgs, config: MpesaConfig) -> Dict[str, str]:
    return {
        "input_ReversalAmount": format_amount(args.reversal_amount),
        "input_TransactionID": args.original_transaction_id,
        "input_ThirdPartyReference": args.third_party_reference,
        "input_ServiceProviderCode": config.service_provider_code,
    }


OPERATIONS: Dict[OperationKind, OperationSpec] = {
    OperationKind.C2B: OperationSpec(OperationKind.C2B, "/ipg/v1x/c2bPayment/singleStage/", False, _c2b_payload),
    OperationKind.B2C: OperationSpec(OperationKind.B2C, "/ipg/v1x/b2cPayment/singleStage/", True, _b2c_payload),
    OperationKind.B2B: OperationSpec(OperationKind.B2B, "/ipg/v1x/b2bPayment/singleStage/", True, _b2b_payload),
    OperationKind.QUERY: OperationSpec(OperationKind.QUERY, "/ipg/v1x/queryPaymentStatus/", True, _query_payload),
    OperationKind.REVERSAL: OperationSpec(OperationKind.REVERSAL, "/ipg/v1x/reversal/", True, _reversal_payload),
}
