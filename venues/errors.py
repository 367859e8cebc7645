"""
Error taxonomy shared by every provider client.

Only InvalidInput subclasses are meant to reach callers. Everything derived
from ProviderUnavailable is recovered locally (fallback, dropped batch,
truncated walk) and only shows up in logs.
"""


class InvalidInput(ValueError):
    """Rejected before any provider is contacted."""


class InvalidAddress(InvalidInput):
    def __init__(self, address):
        super().__init__(f"invalid Ethereum address: {address!r}")
        self.address = address


class InvalidTokenId(InvalidInput):
    def __init__(self, token_id, collection_size: int):
        super().__init__(f"token id {token_id!r} outside 1..{collection_size}")
        self.token_id = token_id


class ProviderUnavailable(RuntimeError):
    """Network failure, timeout, non-success status or RPC error object."""


class MalformedResponse(ProviderUnavailable):
    """The provider answered, but the payload could not be decoded."""
