"""
Mock integration clients.

These clients return fake (but realistic) responses without calling any external API.
They are used when:
- sandbox credentials are not yet available
- we want to test payment flows end-to-end without the network

Important:
- Mock clients must follow the SAME MpesaGateway interface as the real HTTP client.
- Mock clients route fabricated gateway bodies through the same normalizers,
  so envelopes and errors have production shapes.
"""
