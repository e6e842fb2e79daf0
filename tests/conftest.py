import base64
import json
from types import SimpleNamespace

import httpx
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from rayswap import raydium

INPUT_MINT = "So11111111111111111111111111111111111111112"
OUTPUT_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

FEE_PAYLOAD = {"id": "x", "success": True, "data": {"default": {"vh": 900, "h": 500, "m": 100}}}
QUOTE_PAYLOAD = {
    "id": "q1",
    "success": True,
    "data": {"inputMint": INPUT_MINT, "outputMint": OUTPUT_MINT, "inputAmount": "1000000"},
    "route": [
        {"poolId": "pool-a", "marketKeys": {"market": "m1", "bids": "b1"}},
        {"poolId": "pool-b"},
    ],
}


def make_unsigned_blob(payer, lamports=1000) -> str:
    """A base64 v0 transfer transaction with a zeroed signature slot."""
    ix = transfer(TransferParams(from_pubkey=payer, to_pubkey=Pubkey.new_unique(), lamports=lamports))
    msg = MessageV0.try_compile(payer, [ix], [], Hash.new_unique())
    txn = VersionedTransaction.populate(msg, [Signature.default()])
    return base64.b64encode(bytes(txn)).decode()


class FakeSolanaClient:
    """Records send/confirm calls; can be told to fail at a given leg."""

    def __init__(self, fail_send_at=None, fail_confirm_at=None, chain_error_at=None):
        self.fail_send_at = fail_send_at
        self.fail_confirm_at = fail_confirm_at
        self.chain_error_at = chain_error_at
        self.calls = []
        self.sent = []

    def send_raw_transaction(self, txn, opts=None):
        leg = len(self.sent) + 1
        self.calls.append(("send", leg))
        if leg == self.fail_send_at:
            raise RuntimeError("node unavailable")
        self.sent.append((txn, opts))
        signed = VersionedTransaction.from_bytes(txn)
        return SimpleNamespace(value=signed.signatures[0])

    def confirm_transaction(self, tx_sig, commitment=None, **kwargs):
        leg = len(self.sent)
        self.calls.append(("confirm", leg, commitment))
        if leg == self.fail_confirm_at:
            raise RuntimeError("confirmation timed out")
        err = {"InstructionError": [0, "Custom"]} if leg == self.chain_error_at else None
        return SimpleNamespace(value=[SimpleNamespace(err=err)])


class RaydiumStub:
    """httpx MockTransport handler mimicking the three Raydium endpoints."""

    def __init__(self, fee=FEE_PAYLOAD, quote=QUOTE_PAYLOAD, blobs=(), status=None):
        self.fee = fee
        self.quote = quote
        self.blobs = list(blobs)
        self.status = status or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if url == raydium.PRIORITY_FEE_URL:
            name, payload = "fee", self.fee
        elif url == raydium.QUOTE_URL:
            name, payload = "quote", self.quote
        elif url == raydium.TRANSACTION_URL:
            name = "transaction"
            payload = {"id": "t1", "success": True, "data": [{"transaction": b} for b in self.blobs]}
        else:
            return httpx.Response(404)
        return httpx.Response(self.status.get(name, 200), json=payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def body_of(self, url):
        for request in self.requests:
            if str(request.url) == url:
                return json.loads(request.content)
        return None


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def key_file(tmp_path, keypair):
    path = tmp_path / "id.json"
    path.write_text(json.dumps(list(bytes(keypair))))
    return path


@pytest.fixture
def swap_config(keypair):
    return SimpleNamespace(
        keypair=keypair,
        input_mint=INPUT_MINT,
        output_mint=OUTPUT_MINT,
        amount=1000000,
        slippage_bps=50,
        tx_version="V0",
        wrap_sol=True,
        unwrap_sol=False,
        client=FakeSolanaClient(),
    )
