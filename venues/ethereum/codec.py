"""
Contract-call codec for the read-only calls the holdings engine makes.

Supported calls (fixed layouts, selectors pinned here):
- ERC-1155 balanceOfBatch(address[] owners, uint256[] ids) -> uint256[]
- ENS registry resolver(bytes32 node) -> address
- ENS resolver name(bytes32 node) -> string
- ENS resolver addr(bytes32 node) -> address

Each function is pure and independently tested. A positional mistake here
corrupts every ownership result downstream, so decoding is strict: any
shape mismatch raises MalformedResponse instead of returning best guesses.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from web3 import Web3

from venues.errors import InvalidAddress, MalformedResponse


BALANCE_OF_BATCH_SIGNATURE = "balanceOfBatch(address[],uint256[])"
BALANCE_OF_BATCH_SELECTOR = "0x4e1273f4"

RESOLVER_NAME_SIGNATURE = "name(bytes32)"
RESOLVER_NAME_SELECTOR = "0x691f3431"

ENS_RESOLVER_SIGNATURE = "resolver(bytes32)"
ENS_RESOLVER_SELECTOR = "0x0178b8bf"

ADDR_SIGNATURE = "addr(bytes32)"
ADDR_SELECTOR = "0x3b3b57de"

HexOrBytes = Union[str, bytes]


# -------------------------
# Addresses
# -------------------------
def normalize_address(address: str) -> str:
    """
    Validate and checksum an address.

    All-lowercase / all-uppercase hex is accepted as-is; mixed case must
    carry a valid EIP-55 checksum.
    """
    if not isinstance(address, str):
        raise InvalidAddress(address)
    candidate = address.strip()
    if not Web3.is_address(candidate):
        raise InvalidAddress(address)
    return Web3.to_checksum_address(candidate)


def selector_for(signature: str) -> str:
    return "0x" + bytes(Web3.keccak(text=signature))[:4].hex()


# -------------------------
# balanceOfBatch
# -------------------------
def encode_balance_of_batch(owners: Sequence[str], token_ids: Sequence[int]) -> str:
    """
    Build call data for balanceOfBatch.

    owners[k] is paired with token_ids[k]; both arrays must be the same length.
    """
    if len(owners) != len(token_ids):
        raise ValueError(
            f"balanceOfBatch arity mismatch owners={len(owners)} ids={len(token_ids)}"
        )
    try:
        args = encode(["address[]", "uint256[]"], [list(owners), [int(i) for i in token_ids]])
    except EncodingError as exc:
        raise ValueError(f"balanceOfBatch encode failed: {exc}") from exc
    return BALANCE_OF_BATCH_SELECTOR + args.hex()


def decode_uint256_array(data: HexOrBytes, expected_len: Optional[int] = None) -> List[int]:
    """
    Decode a single dynamic uint256[] return value.

    Raises MalformedResponse on empty output, undecodable bytes, or a length
    different from expected_len (when given).
    """
    raw = _to_bytes(data)
    if not raw:
        raise MalformedResponse("empty eth_call output")
    try:
        (values,) = decode(["uint256[]"], raw)
    except DecodingError as exc:
        raise MalformedResponse(f"uint256[] decode failed: {exc}") from exc

    values = [int(v) for v in values]
    if expected_len is not None and len(values) != expected_len:
        raise MalformedResponse(
            f"uint256[] length mismatch expected={expected_len} got={len(values)}"
        )
    return values


# -------------------------
# ENS reverse name
# -------------------------
def namehash(name: str) -> bytes:
    node = b"\x00" * 32
    if not name:
        return node
    for label in reversed(name.split(".")):
        node = bytes(Web3.keccak(node + bytes(Web3.keccak(text=label))))
    return node


def reverse_node(address: str) -> bytes:
    """Node for <hex address without 0x, lowercase>.addr.reverse"""
    checksummed = normalize_address(address)
    return namehash(f"{checksummed[2:].lower()}.addr.reverse")


def encode_node_call(selector: str, node: bytes) -> str:
    """Call data for any f(bytes32 node) ENS read."""
    if len(node) != 32:
        raise ValueError(f"ENS node must be 32 bytes, got {len(node)}")
    return selector + encode(["bytes32"], [node]).hex()


def encode_registry_resolver(node: bytes) -> str:
    return encode_node_call(ENS_RESOLVER_SELECTOR, node)


def encode_resolver_name(node: bytes) -> str:
    return encode_node_call(RESOLVER_NAME_SELECTOR, node)


def encode_addr(node: bytes) -> str:
    return encode_node_call(ADDR_SELECTOR, node)


def decode_address(data: HexOrBytes) -> Optional[str]:
    """Decode an ABI address return value; empty output or the zero address -> None."""
    raw = _to_bytes(data)
    if not raw:
        return None
    try:
        (value,) = decode(["address"], raw)
    except DecodingError as exc:
        raise MalformedResponse(f"address decode failed: {exc}") from exc
    if int(value, 16) == 0:
        return None
    return Web3.to_checksum_address(value)


def decode_string(data: HexOrBytes) -> Optional[str]:
    """Decode an ABI string return value; empty output or empty string -> None."""
    raw = _to_bytes(data)
    if not raw:
        return None
    try:
        (value,) = decode(["string"], raw)
    except DecodingError as exc:
        raise MalformedResponse(f"string decode failed: {exc}") from exc
    return value or None


# -------------------------
# Helpers
# -------------------------
def _to_bytes(data: HexOrBytes) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if not isinstance(data, str):
        raise MalformedResponse(f"unexpected eth_call output type {type(data).__name__}")
    s = data[2:] if data.startswith(("0x", "0X")) else data
    try:
        return bytes.fromhex(s)
    except ValueError as exc:
        raise MalformedResponse(f"eth_call output is not hex: {data[:40]!r}") from exc
