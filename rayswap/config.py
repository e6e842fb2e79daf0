# config.py
import os
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed

from rayswap.errors import SwapError
from rayswap.log import set_level
from rayswap.wallet import load_keypair

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

U64_MAX = 2**64 - 1

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _required(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise SwapError(f"{name} must be set in .env")
    return value


def _u64(environ: Mapping[str, str], name: str) -> int:
    raw = _required(environ, name)
    # int() would also accept "+5", "1_000" and surrounding whitespace
    if not (raw.isascii() and raw.isdigit()):
        raise SwapError(f"{name} must be a valid u64")
    value = int(raw)
    if value > U64_MAX:
        raise SwapError(f"{name} must be a valid u64")
    return value


def _flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    raw = raw.strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise SwapError(f"{name} must be a boolean (true/false), got {raw!r}")


class Config:
    """
    Swap parameters read from the environment.

    Required: KEYPAIR_PATH, INPUT_MINT, OUTPUT_MINT, AMOUNT, SLIPPAGE_BPS,
    TX_VERSION. Optional: WRAP_SOL (default true), UNWRAP_SOL (default
    false), RPC_URL, LOG_LEVEL.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        if environ is None:
            environ = os.environ
        self.keypair_path = _required(environ, "KEYPAIR_PATH")
        self.input_mint = _required(environ, "INPUT_MINT")
        self.output_mint = _required(environ, "OUTPUT_MINT")
        self.amount = _u64(environ, "AMOUNT")
        self.slippage_bps = _u64(environ, "SLIPPAGE_BPS")
        self.tx_version = _required(environ, "TX_VERSION")
        self.wrap_sol = _flag(environ, "WRAP_SOL", True)
        self.unwrap_sol = _flag(environ, "UNWRAP_SOL", False)
        self.rpc_url = environ.get("RPC_URL") or DEFAULT_RPC_URL
        self.log_level = environ.get("LOG_LEVEL") or "INFO"

        self._keypair = None
        self._client = None

    @property
    def keypair(self):
        if self._keypair is None:
            try:
                self._keypair = load_keypair(self.keypair_path)
            except SwapError as e:
                raise SwapError(f"Failed to read keypair from {self.keypair_path}") from e
        return self._keypair

    @property
    def public_address(self):
        return self.keypair.pubkey()

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.rpc_url, commitment=Confirmed)
        return self._client


_config_instance = None


def config(environ: Optional[Mapping[str, str]] = None) -> Config:
    global _config_instance
    if _config_instance is None:
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True))
        _config_instance = Config(environ)
        set_level(_config_instance.log_level)
    return _config_instance


def reset_config() -> None:
    global _config_instance
    _config_instance = None
