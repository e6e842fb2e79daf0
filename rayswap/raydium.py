# raydium.py
from dataclasses import dataclass
import json
from typing import Any, Dict, List, Tuple

import httpx

from rayswap.errors import SwapError
from rayswap.log import log_general, log_transaction

PRIORITY_FEE_URL = "https://api-v3.raydium.io/main/auto-fee"
SWAP_HOST = "https://transaction-v1.raydium.io"
QUOTE_URL = f"{SWAP_HOST}/compute/swap-base-in"
TRANSACTION_URL = f"{SWAP_HOST}/transaction/swap-base-in"

U64_MAX = 2**64 - 1

###############################################################################
#                              Response Types
###############################################################################

def _unsigned(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise SwapError(f"priority-fee field '{field}' is not an unsigned integer: {value!r}")
    return value


@dataclass(frozen=True)
class FeeTiers:
    """Priority-fee schedule in micro-lamports per compute unit."""
    vh: int
    h: int
    m: int

    @classmethod
    def from_response(cls, payload: Any) -> "FeeTiers":
        try:
            tiers = payload["data"]["default"]
        except (KeyError, TypeError) as e:
            raise SwapError("priority-fee response has no data.default object") from e
        if not isinstance(tiers, dict):
            raise SwapError("priority-fee response has no data.default object")
        try:
            return cls(
                vh=_unsigned(tiers["vh"], "vh"),
                h=_unsigned(tiers["h"], "h"),
                m=_unsigned(tiers["m"], "m"),
            )
        except KeyError as e:
            raise SwapError(f"priority-fee response is missing tier {e}") from e


@dataclass(frozen=True)
class SwapTransactions:
    """Base64 transaction blobs, one per leg, in submission order."""
    transactions: List[str]

    @classmethod
    def from_response(cls, payload: Any) -> "SwapTransactions":
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise SwapError("swap transaction response has no data array")
        blobs = []
        for i, item in enumerate(data):
            blob = item.get("transaction") if isinstance(item, dict) else None
            if not isinstance(blob, str):
                raise SwapError(f"Leg {i + 1}: swap transaction entry has no transaction string")
            blobs.append(blob)
        return cls(transactions=blobs)

    def __len__(self) -> int:
        return len(self.transactions)

###############################################################################
#                              HTTP Helpers
###############################################################################

async def _request(http: httpx.AsyncClient, name: str, method: str, url: str, **kwargs) -> httpx.Response:
    try:
        response = await http.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        raise SwapError(f"Failed to call {name}") from e
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise SwapError(f"{name} returned HTTP {response.status_code}") from e
    return response


def _parse_json(response: httpx.Response, name: str) -> Any:
    try:
        return response.json()
    except json.JSONDecodeError as e:
        raise SwapError(f"Failed to parse {name} JSON") from e

###############################################################################
#                              Raydium Calls
###############################################################################

async def fetch_priority_fee(http: httpx.AsyncClient) -> FeeTiers:
    log_general.info(f"Calling priority-fee at: {PRIORITY_FEE_URL}")
    response = await _request(http, "priority-fee endpoint", "GET", PRIORITY_FEE_URL)
    return FeeTiers.from_response(_parse_json(response, "priority-fee"))


def quote_params(
    input_mint: str,
    output_mint: str,
    amount: int,
    slippage_bps: int,
    tx_version: str
) -> Dict[str, str]:
    return {
        "inputMint": input_mint,
        "outputMint": output_mint,
        "amount": str(amount),
        "slippageBps": str(slippage_bps),
        "txVersion": tx_version,
    }


async def fetch_quote(
    http: httpx.AsyncClient,
    input_mint: str,
    output_mint: str,
    amount: int,
    slippage_bps: int,
    tx_version: str
) -> Dict[str, Any]:
    """
    Calls Raydium's 'compute/swap-base-in' endpoint.

    The quote is returned as an opaque dict and later forwarded verbatim
    to the transaction builder.

    :param amount: Amount of the input token in its smallest unit.
    :param slippage_bps: Slippage tolerance in basis points.
    :param tx_version: Transaction format, e.g. 'V0' or 'LEGACY'.
    :return: The JSON object returned by the endpoint.
    """
    params = quote_params(input_mint, output_mint, amount, slippage_bps, tx_version)
    request_url = httpx.URL(QUOTE_URL, params=params)
    log_general.info(f"Fetching swap quote from: {request_url}")

    response = await _request(http, "compute/swap-base-in", "GET", QUOTE_URL, params=params)
    quote = _parse_json(response, "swap quote")
    if not isinstance(quote, dict):
        raise SwapError(f"Swap quote is not a JSON object: {quote!r}")
    return quote


def route_market_keys(quote: Dict[str, Any]) -> List[Tuple[int, Any]]:
    """
    Returns (leg number, marketKeys) for every leg of the quote's optional
    `route` array that carries a `marketKeys` field. Leg numbers are 1-based.
    """
    route = quote.get("route")
    if not isinstance(route, list):
        return []
    found = []
    for i, step in enumerate(route):
        if isinstance(step, dict) and "marketKeys" in step:
            found.append((i + 1, step["marketKeys"]))
    return found


def log_route(quote: Dict[str, Any]) -> None:
    if "route" not in quote:
        return
    log_transaction.info("-" * 31)
    log_transaction.info("Detailed `marketKeys` for each leg in `route`:")
    for leg, market_keys in route_market_keys(quote):
        pretty = json.dumps(market_keys, indent=2)
        log_transaction.info(f" Leg {leg} marketKeys:\n{pretty}\n")
    log_transaction.info("-" * 31)


def build_swap_request(
    compute_unit_price_micro_lamports: int,
    quote: Dict[str, Any],
    tx_version: str,
    wallet: str,
    wrap_sol: bool = True,
    unwrap_sol: bool = False
) -> Dict[str, Any]:
    return {
        "computeUnitPriceMicroLamports": str(compute_unit_price_micro_lamports),
        "swapResponse": quote,
        "txVersion": tx_version,
        "wallet": wallet,
        "wrapSol": wrap_sol,
        "unwrapSol": unwrap_sol,
    }


async def create_transactions(http: httpx.AsyncClient, body: Dict[str, Any]) -> SwapTransactions:
    """
    Calls Raydium's 'transaction/swap-base-in' endpoint to turn a quote into
    unsigned, base64-encoded transactions.
    """
    log_general.info(f"Building swap transaction via: {TRANSACTION_URL}")
    response = await _request(http, "transaction/swap-base-in", "POST", TRANSACTION_URL, json=body)
    log_transaction.debug(f"Raw /transaction/swap-base-in response JSON:\n{response.text}")

    payload = _parse_json(response, "transaction/swap-base-in")
    try:
        return SwapTransactions.from_response(payload)
    except SwapError as e:
        raise SwapError("Failed to deserialize swap transaction response") from e
