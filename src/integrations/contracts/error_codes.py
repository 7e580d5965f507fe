"""
M-Pesa response codes.

The gateway answers every request with an ``output_ResponseCode``. ``INS-0`` is
the only success value; everything else is a failure, even when the HTTP layer
reports 200. The descriptions below are the user-facing text we surface in
``MpesaError.description`` and envelope messages.
"""

from types import MappingProxyType
from typing import Mapping, Optional

SUCCESS_CODE = "INS-0"
FALLBACK_CODE = "INS-1"
FALLBACK_HTTP_STATUS = 500
BUSINESS_ERROR_HTTP_STATUS = 400
NETWORK_ERROR_DESCRIPTION = "Network error: unable to reach the M-Pesa API (connection failed or timed out)"

MPESA_ERROR_MESSAGES: Mapping[str, str] = MappingProxyType({
    # Success
    "INS-0": "Request processed successfully",

    # Documented API errors
    "INS-1": "Internal Error",
    "INS-2": "Invalid API Key",
    "INS-4": "User is not active",
    "INS-5": "Transaction cancelled by customer",
    "INS-6": "Transaction Failed",
    "INS-9": "Request timeout",
    "INS-10": "Duplicate Transaction",
    "INS-13": "Invalid Shortcode Used",
    "INS-14": "Invalid Reference Used",
    "INS-15": "Invalid Amount Used",
    "INS-16": "Unable to handle the request due to a temporary overloading",
    "INS-17": "Invalid Transaction Reference. Length Should Be Between 1 and 20.",
    "INS-18": "Invalid TransactionID Used",
    "INS-19": "Invalid ThirdPartyReference Used",
    "INS-20": "Not All Parameters Provided. Please try again.",
    "INS-21": "Parameter validations failed. Please try again.",
    "INS-22": "Invalid Operation Type",
    "INS-23": "Unknown Status. Contact M-Pesa Support",
    "INS-24": "Invalid InitiatorIdentifier Used",
    "INS-25": "Invalid SecurityCredential Used",
    "INS-26": "Not authorized",
    "INS-993": "Direct Debit Missing",
    "INS-994": "Direct Debit Already Exists",
    "INS-995": "Customer's Profile Has Problems",
    "INS-996": "Customer Account Status Not Active",
    "INS-997": "Linking Transaction Not Found",
    "INS-998": "Invalid Market",
    "INS-2001": "Initiator authentication error.",
    "INS-2002": "Receiver invalid.",
    "INS-2006": "Insufficient balance",
    "INS-2051": "Invalid number",
    "INS-2057": "Language code invalid.",
})


def is_success_code(code: Optional[str]) -> bool:
    return code == SUCCESS_CODE


def describe_code(code: Optional[str], upstream_description: Optional[str] = None) -> str:
    """
    Resolve the user-facing text for a response code.

    Known codes win over whatever the gateway sent; unknown codes fall back to
    the upstream description and finally to the generic internal error text.
    """
    if code and code in MPESA_ERROR_MESSAGES:
        return MPESA_ERROR_MESSAGES[code]
    if isinstance(upstream_description, str) and upstream_description.strip():
        return upstream_description.strip()
    return MPESA_ERROR_MESSAGES[FALLBACK_CODE]
