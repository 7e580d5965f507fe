import asyncio
import base64

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric import padding
from pydantic import ValidationError

from src.integrations.clients.real_http.mpesa import MpesaClient
from src.integrations.contracts.error_codes import NETWORK_ERROR_DESCRIPTION
from src.integrations.contracts.interfaces import B2BArgs, B2CArgs, C2BArgs, QueryArgs, ReversalArgs
from src.integrations.policy.error_wrappers import MpesaError
from src.utils.auth_token import TokenGenerationError

SUCCESS = {
    "output_ResponseCode": "INS-0",
    "output_ResponseDesc": "Request processed successfully",
    "output_TransactionID": "T1",
    "output_ConversationID": "C1",
    "output_ThirdPartyReference": "REF1",
}

C2B = C2BArgs(amount=100.00, number="258841234567", transaction_reference="TRX1", third_party_reference="REF1")


def _bearer_secret(request, private_key):
    scheme, token = request.headers["Authorization"].split(" ", 1)
    assert scheme == "Bearer"
    return private_key.decrypt(base64.b64decode(token), padding.PKCS1v15())


@pytest.mark.asyncio
async def test_c2b_success(gateway, rsa_private_key):
    client, stub = gateway(json_body=SUCCESS)

    out = await client.c2b(C2B)

    assert out.status == "success"
    assert out.http_status == 200
    assert out.data.amount == "100.00"
    assert out.data.customer_msisdn == "258841234567"
    assert out.data.transaction_id == "T1"

    request = stub.last_request
    assert request.method == "POST"
    assert request.url.scheme == "https"
    assert request.url.host == "api.sandbox.vm.co.mz"
    assert request.url.port == 18352
    assert request.url.path == "/ipg/v1x/c2bPayment/singleStage/"
    assert request.headers["Origin"] == "developer.mpesa.vm.co.mz"
    assert request.headers["Content-Type"] == "application/json"
    assert "X-Api-Key" not in request.headers
    assert _bearer_secret(request, rsa_private_key) == b"test-api-key-123"
    assert stub.last_payload == {
        "input_Amount": "100.00",
        "input_CustomerMSISDN": "258841234567",
        "input_TransactionReference": "TRX1",
        "input_ThirdPartyReference": "REF1",
        "input_ServiceProviderCode": "171717",
    }


@pytest.mark.asyncio
async def test_b2c_sends_api_key_and_default_payment_service(gateway):
    client, stub = gateway(json_body={**SUCCESS, "output_SettlementAmount": "24.50"})

    out = await client.b2c(B2CArgs(amount=25, number="258841234567", transaction_reference="TRX2", third_party_reference="REF2"))

    assert out.data.settlement_amount == "24.50"
    assert stub.last_request.url.path == "/ipg/v1x/b2cPayment/singleStage/"
    assert stub.last_request.headers["X-Api-Key"] == "test-api-key-123"
    assert stub.last_payload == {
        "input_Amount": "25.00",
        "input_CustomerMsisdn": "258841234567",
        "input_TransactionReference": "TRX2",
        "input_ThirdPartyReference": "REF2",
        "input_ServiceProviderCode": "171717",
        "input_PaymentServices": "BusinessPayBill",
    }


@pytest.mark.asyncio
async def test_b2b_wire_contract(gateway):
    client, stub = gateway(json_body=SUCCESS)

    out = await client.b2b(B2BArgs(
        amount="300",
        primary_party_code="171717",
        recipient_party_code="979797",
        transaction_reference="TRX3",
        third_party_reference="REF3",
    ))

    assert out.data.recipient_party_code == "979797"
    assert stub.last_request.url.path == "/ipg/v1x/b2bPayment/singleStage/"
    assert stub.last_request.headers["X-Api-Key"] == "test-api-key-123"
    assert stub.last_payload == {
        "input_Amount": "300.00",
        "input_PrimaryPartyCode": "171717",
        "input_RecipientPartyCode": "979797",
        "input_TransactionReference": "TRX3",
        "input_ThirdPartyReference": "REF3",
        "input_ServiceProviderCode": "171717",
        "input_PaymentServices": "BusinessToBusinessTransfer",
    }


@pytest.mark.asyncio
async def test_query_wire_contract(gateway):
    client, stub = gateway(json_body={**SUCCESS, "output_ResponseTransactionStatus": "Completed"})

    out = await client.query(QueryArgs(query_reference="T1", third_party_reference="REF4"))

    assert out.data.transaction_status == "Completed"
    assert stub.last_request.url.path == "/ipg/v1x/queryPaymentStatus/"
    assert stub.last_request.headers["X-Api-Key"] == "test-api-key-123"
    assert stub.last_payload == {
        "input_QueryReference": "T1",
        "input_ServiceProviderCode": "171717",
        "input_ThirdPartyReference": "REF4",
    }


@pytest.mark.asyncio
async def test_reversal_wire_contract(gateway):
    client, stub = gateway(json_body=SUCCESS)

    out = await client.reversal(ReversalArgs(original_transaction_id="T1", reversal_amount=10.005, third_party_reference="REF5"))

    assert out.data.reversal_amount == "10.01"
    assert stub.last_request.url.path == "/ipg/v1x/reversal/"
    assert stub.last_request.headers["X-Api-Key"] == "test-api-key-123"
    assert stub.last_payload == {
        "input_ReversalAmount": "10.01",
        "input_TransactionID": "T1",
        "input_ThirdPartyReference": "REF5",
        "input_ServiceProviderCode": "171717",
    }


@pytest.mark.asyncio
async def test_insufficient_balance_in_200_body(gateway):
    client, _ = gateway(json_body={
        "output_ResponseCode": "INS-2006",
        "output_ResponseDesc": "Insufficient balance",
        "output_ConversationID": "C2",
        "output_ThirdPartyReference": "REF1",
    })

    with pytest.raises(MpesaError) as excinfo:
        await client.c2b(C2B)

    assert excinfo.value.code == "INS-2006"
    assert excinfo.value.description == "Insufficient balance"
    assert excinfo.value.http_status == 400
    assert excinfo.value.conversation_id == "C2"


@pytest.mark.asyncio
async def test_unknown_error_code_keeps_gateway_text(gateway):
    client, _ = gateway(json_body={"output_ResponseCode": "INS-5050", "output_ResponseDesc": "Daily limit exceeded"})

    with pytest.raises(MpesaError) as excinfo:
        await client.b2c(B2CArgs(amount=1, number="258841234567", transaction_reference="T", third_party_reference="R"))

    assert excinfo.value.code == "INS-5050"
    assert excinfo.value.description == "Daily limit exceeded"


@pytest.mark.asyncio
async def test_http_error_status_keeps_status_and_code(gateway):
    client, _ = gateway(status_code=409, json_body={"output_ResponseCode": "INS-10", "output_ResponseDesc": "Duplicate"})

    with pytest.raises(MpesaError) as excinfo:
        await client.c2b(C2B)

    assert excinfo.value.code == "INS-10"
    assert excinfo.value.description == "Duplicate Transaction"
    assert excinfo.value.http_status == 409
    assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_network_failure(gateway):
    client, _ = gateway(error=lambda request: httpx.ConnectError("Connection refused", request=request))

    with pytest.raises(MpesaError) as excinfo:
        await client.c2b(C2B)

    assert excinfo.value.code == "INS-1"
    assert excinfo.value.description == NETWORK_ERROR_DESCRIPTION
    assert excinfo.value.http_status == 500


@pytest.mark.asyncio
async def test_timeout_is_a_network_failure(gateway):
    client, _ = gateway(error=lambda request: httpx.ReadTimeout("timed out", request=request))

    with pytest.raises(MpesaError) as excinfo:
        await client.query(QueryArgs(query_reference="T1", third_party_reference="R"))

    assert excinfo.value.description == NETWORK_ERROR_DESCRIPTION
    assert excinfo.value.http_status == 500


@pytest.mark.asyncio
async def test_non_json_body_is_never_returned_raw(gateway):
    client, _ = gateway(text="<html>maintenance</html>")

    with pytest.raises(MpesaError) as excinfo:
        await client.c2b(C2B)

    assert excinfo.value.code == "INS-1"
    assert excinfo.value.http_status == 500


@pytest.mark.asyncio
async def test_json_list_body_is_rejected(gateway):
    client, _ = gateway(json_body=[SUCCESS])

    with pytest.raises(MpesaError) as excinfo:
        await client.c2b(C2B)

    assert excinfo.value.code == "INS-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "args, code",
    [
        (C2BArgs(amount=0, number="258841234567", transaction_reference="T", third_party_reference="R"), "INS-15"),
        (C2BArgs(amount=0.004, number="258841234567", transaction_reference="T", third_party_reference="R"), "INS-15"),
        (C2BArgs(amount="abc", number="258841234567", transaction_reference="T", third_party_reference="R"), "INS-15"),
        (C2BArgs(amount=10, number="", transaction_reference="T", third_party_reference="R"), "INS-20"),
        (C2BArgs(amount=10, number="258841234567", transaction_reference="  ", third_party_reference="R"), "INS-20"),
    ],
)
async def test_invalid_arguments_fail_before_sending(gateway, args, code):
    client, stub = gateway(json_body=SUCCESS)

    with pytest.raises(MpesaError) as excinfo:
        await client.c2b(args)

    assert excinfo.value.code == code
    assert excinfo.value.http_status == 400
    assert stub.requests == []


@pytest.mark.asyncio
async def test_token_is_derived_once_per_client(gateway):
    client, stub = gateway(json_body=SUCCESS)

    await client.c2b(C2B)
    await client.query(QueryArgs(query_reference="T1", third_party_reference="R"))

    first, second = stub.requests
    assert first.headers["Authorization"] == second.headers["Authorization"]


@pytest.mark.asyncio
async def test_concurrent_calls_share_one_client(gateway):
    client, stub = gateway(json_body=SUCCESS)

    results = await asyncio.gather(*[
        client.query(QueryArgs(query_reference=f"T{i}", third_party_reference=f"R{i}"))
        for i in range(5)
    ])

    assert [r.data.query_reference for r in results] == [f"T{i}" for i in range(5)]
    assert len(stub.requests) == 5


def test_client_accepts_plain_dict_config(public_key_pem):
    client = MpesaClient({
        "api_key": "k",
        "public_key": public_key_pem,
        "service_provider_code": "171717",
        "origin": "o",
        "env": "live",
    })

    assert client.config.base_url == "https://api.vm.co.mz:18352"


def test_client_with_bad_public_key_is_unusable(mpesa_config):
    bad = mpesa_config.model_copy(update={"public_key": "bm90LWEta2V5"})

    with pytest.raises(TokenGenerationError):
        MpesaClient(bad)


def test_client_without_host_fails_at_construction(public_key_pem):
    with pytest.raises(ValidationError):
        MpesaClient({"api_key": "k", "public_key": public_key_pem, "service_provider_code": "1", "origin": "o"})


def test_client_with_unparseable_host_fails_at_construction(public_key_pem):
    with pytest.raises(ValidationError, match="api_host is not a valid host"):
        MpesaClient({
            "api_key": "k",
            "public_key": public_key_pem,
            "service_provider_code": "1",
            "origin": "o",
            "api_host": "api.vm.co.mz:notaport",
        })
