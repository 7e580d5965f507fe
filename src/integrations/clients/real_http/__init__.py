"""
Real HTTP integration clients.

These clients talk to the M-Pesa Mozambique gateway over HTTPS.

Important:
- Must implement the same MpesaGateway interface as the mock client
- Must return envelopes built by src/integrations/policy/response_wrappers.py
  and raise errors built by src/integrations/policy/error_wrappers.py
"""
