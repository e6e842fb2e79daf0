# transactions.py
import base64
import binascii
from typing import List, Optional, Sequence

import httpx
from solders import message
from solders.keypair import Keypair
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from solana.rpc.commitment import Finalized
from solana.rpc.types import TxOpts

from rayswap.errors import SwapError
from rayswap.log import log_general, log_transaction
from rayswap import raydium

EXPLORER_TX_URL = "http://solscan.io/tx/{}"

###############################################################################
#                           Decoding & Signing
###############################################################################

def decode_transaction(blob: str, leg: int) -> VersionedTransaction:
    """
    Base64-decodes and deserializes one unsigned transaction.

    :param blob: base64-encoded transaction from the builder endpoint.
    :param leg: 1-based leg number, used in error messages.
    """
    try:
        raw_bytes = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SwapError(f"Leg {leg}: failed to base64-decode transaction") from e

    try:
        return VersionedTransaction.from_bytes(raw_bytes)
    except Exception as e:
        raise SwapError(f"Leg {leg}: failed to deserialize VersionedTransaction") from e


def decode_transactions(blobs: Sequence[str]) -> List[VersionedTransaction]:
    # every leg is decoded before the first one is signed
    return [decode_transaction(blob, i + 1) for i, blob in enumerate(blobs)]


def sign_transaction(raw_txn: VersionedTransaction, keypair: Keypair) -> VersionedTransaction:
    """
    Rebuilds the transaction around its original message with a single
    fresh signature from `keypair`. Whatever signatures the decoded
    transaction carried are dropped.
    """
    try:
        sig = keypair.sign_message(message.to_bytes_versioned(raw_txn.message))
        return VersionedTransaction.populate(raw_txn.message, [sig])
    except Exception as e:
        raise SwapError("Failed to rebuild VersionedTransaction with signature") from e

###############################################################################
#                           Sending & Confirming
###############################################################################

def send_transaction(signed_txn: VersionedTransaction, client) -> Signature:
    """Sends a signed transaction with preflight simulation disabled."""
    opts = TxOpts(skip_preflight=True)
    try:
        result = client.send_raw_transaction(bytes(signed_txn), opts)
    except Exception as e:
        raise SwapError("Failed to send VersionedTransaction") from e
    return result.value


def confirm_transaction(txid: Signature, client) -> None:
    """Blocks until `txid` reaches finalized commitment."""
    try:
        resp = client.confirm_transaction(txid, commitment=Finalized)
    except Exception as e:
        raise SwapError("Failed to confirm transaction") from e

    statuses = getattr(resp, "value", None) or []
    status = statuses[0] if statuses else None
    if status is not None and status.err is not None:
        raise SwapError(f"Transaction {txid} failed on chain: {status.err}")


def submit_transactions(
    transactions: Sequence[VersionedTransaction],
    keypair: Keypair,
    client
) -> List[Signature]:
    """
    Signs, sends and confirms each transaction in order. The first
    failure aborts the run; later legs are never attempted.
    """
    txids = []
    for i, raw_txn in enumerate(transactions):
        signed_txn = sign_transaction(raw_txn, keypair)

        log_general.info(f"{i + 1} transaction sending...")
        txid = send_transaction(signed_txn, client)
        confirm_transaction(txid, client)

        log_transaction.info(f"{i + 1} transaction confirmed, txId: {txid}")
        log_transaction.info(EXPLORER_TX_URL.format(txid))
        txids.append(txid)
    return txids

###############################################################################
#                            High-Level Swap Function
###############################################################################

async def perform_swap(cfg, http: Optional[httpx.AsyncClient] = None) -> List[Signature]:
    """
    Runs a complete swap through Raydium.
    1) Loads the wallet keypair.
    2) Fetches the priority-fee schedule and keeps the 'high' tier.
    3) Fetches a quote for the configured pair and amount.
    4) Asks Raydium to build the unsigned transactions.
    5) Decodes them all, then signs, sends and confirms each in order.

    :param cfg: A `Config` (or anything exposing the same attributes).
    :param http: Optional HTTP client; one is opened for the run if omitted.
    :return: The transaction signatures, in submission order.
    """
    if http is None:
        async with httpx.AsyncClient() as client:
            return await perform_swap(cfg, client)

    keypair = cfg.keypair
    log_general.info(
        f"Initiating swap: {cfg.amount} of {cfg.input_mint} -> {cfg.output_mint}"
    )

    fees = await raydium.fetch_priority_fee(http)
    high_fee = fees.h
    log_general.info(f"Using 'high' fee tier = {high_fee} micro-lamports")

    quote = await raydium.fetch_quote(
        http,
        input_mint=cfg.input_mint,
        output_mint=cfg.output_mint,
        amount=cfg.amount,
        slippage_bps=cfg.slippage_bps,
        tx_version=cfg.tx_version
    )
    raydium.log_route(quote)

    body = raydium.build_swap_request(
        compute_unit_price_micro_lamports=high_fee,
        quote=quote,
        tx_version=cfg.tx_version,
        wallet=str(keypair.pubkey()),
        wrap_sol=cfg.wrap_sol,
        unwrap_sol=cfg.unwrap_sol
    )
    swap_txs = await raydium.create_transactions(http, body)

    transactions = decode_transactions(swap_txs.transactions)
    log_general.info(f"total {len(transactions)} transactions")

    return submit_transactions(transactions, keypair, cfg.client)
