import json
from pathlib import Path

import httpx
import pytest
from eth_abi import decode, encode

from config.settings import AppSettings
from readers.collection.models import CollectionSnapshot, Token, WalletHoldings
from venues.ethereum.codec import (
    ADDR_SELECTOR,
    BALANCE_OF_BATCH_SELECTOR,
    ENS_RESOLVER_SELECTOR,
    RESOLVER_NAME_SELECTOR,
    namehash,
    reverse_node,
)

WALLET_A = "0x1111111111111111111111111111111111111111"
WALLET_B = "0x2222222222222222222222222222222222222222"

ENS_REGISTRY = "0x00000000000c2e074ec69a0bfb2997ba6c7d2e1e"
ENS_RESOLVER = "0x4976fb03c32e5b8cfe2b6ccb31c09ba78ebaba41"
ZERO_ADDRESS = "0x" + "0" * 40


def make_token(token_id: int, **kw) -> Token:
    kw.setdefault("name", f"Meme #{token_id}")
    kw.setdefault("artist", "6529er")
    return Token(id=token_id, **kw)


def make_snapshot(ids, *, fetched_at_ms: int = 1_000, **token_kw) -> CollectionSnapshot:
    return CollectionSnapshot.from_tokens(
        [make_token(i, **token_kw) for i in ids],
        fetched_at_ms=fetched_at_ms,
    )


def make_wallet(address: str, ids, *, checked: int = 1_000, **kw) -> WalletHoldings:
    return WalletHoldings(address=address, owned_token_ids=frozenset(ids), last_checked_ms=checked, **kw)


def seize_record(token_id, **kw) -> dict:
    rec = {
        "id": token_id,
        "name": f"Meme {token_id}",
        "artist": "6529er",
        "image": f"https://cdn.test/{token_id}.png",
        "thumbnail": f"https://cdn.test/{token_id}_thumb.png",
        "floor_price": 0.1,
        "highest_offer": 0.05,
        "supply": 300,
    }
    rec.update(kw)
    return rec


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def rpc_result(req_id, result) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": req_id, "result": result})


def balance_rpc_handler(holdings, *, fail_batches=(), names=None, forward=None, calls=None):
    """
    Fake JSON-RPC endpoint for balanceOfBatch and the ENS registry/resolver reads.

    holdings maps lowercase owner -> set of held ids. A batch whose first id
    is in fail_batches answers with a wrong-length array. names maps
    address -> primary name; forward maps name -> address and defaults to the
    inverse of names. Every known node resolves through ENS_RESOLVER.
    """
    names = names or {}
    if forward is None:
        forward = {name: address for address, name in names.items()}
    reverse = {reverse_node(address): name for address, name in names.items()}
    addrs = {namehash(name.lower()): address for name, address in forward.items()}

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        call = body["params"][0]
        data = call["data"]
        if calls is not None:
            calls.append(data[:10])

        if data.startswith(BALANCE_OF_BATCH_SELECTOR):
            owners, ids = decode(["address[]", "uint256[]"], bytes.fromhex(data[10:]))
            owned = holdings.get(owners[0].lower(), set())
            balances = [1 if i in owned else 0 for i in ids]
            if ids[0] in fail_batches:
                balances = balances[:-1]
            return rpc_result(body["id"], "0x" + encode(["uint256[]"], [balances]).hex())

        node = bytes(decode(["bytes32"], bytes.fromhex(data[10:]))[0]) if len(data) == 74 else None

        if data.startswith(ENS_RESOLVER_SELECTOR):
            resolver = ENS_RESOLVER if node in reverse or node in addrs else ZERO_ADDRESS
            return rpc_result(body["id"], "0x" + encode(["address"], [resolver]).hex())

        if data.startswith(RESOLVER_NAME_SELECTOR):
            return rpc_result(body["id"], "0x" + encode(["string"], [reverse.get(node, "")]).hex())

        if data.startswith(ADDR_SELECTOR):
            return rpc_result(body["id"], "0x" + encode(["address"], [addrs.get(node, ZERO_ADDRESS)]).hex())

        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"message": "unknown call"}})

    return handler


@pytest.fixture
def settings_factory(tmp_path: Path):
    def build(**overrides) -> AppSettings:
        base = dict(
            SEIZE_API_BASE="https://seize.test/api",
            RPC_URL="https://rpc.test",
            SIMPLEHASH_API_BASE="https://simplehash.test/api/v0",
            SIMPLEHASH_API_KEY="",
            ALCHEMY_API_KEY="",
            OPENSEA_API_KEY="",
            ENSIDEAS_API_BASE="https://ensideas.test",
            COLLECTION_SIZE=10,
            SEASON_SIZE=5,
            COLLECTION_PAGE_SIZE=5,
            COLLECTION_MAX_ITEMS=12,
            ONCHAIN_BATCH_SIZE=5,
            HOLDINGS_PROVIDERS=("onchain", "simplehash"),
            ATTEMPT_TIMEOUT=2.0,
            CACHE_PATH=tmp_path / "cache" / "memes_metadata.json",
            WALLETS=(),
        )
        base.update(overrides)
        return AppSettings(**base)

    return build
