# wallet.py
import json
from pathlib import Path

from solders.keypair import Keypair

from rayswap.errors import SwapError

KEYPAIR_LENGTH = 64


def load_keypair(path) -> Keypair:
    """
    Loads a keypair from a file holding a JSON array of 64 bytes
    (secret key followed by public key), the format written by
    `solana-keygen`.
    """
    key_file = Path(path)
    try:
        content = key_file.read_text()
    except OSError as e:
        raise SwapError(f"Failed to open keypair file: {key_file}") from e

    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise SwapError("Keypair file is not valid JSON") from e

    if not isinstance(raw, list) or not all(
        isinstance(b, int) and not isinstance(b, bool) for b in raw
    ):
        raise SwapError("Keypair JSON is not an array of bytes")

    try:
        secret = bytes(raw)
    except ValueError as e:
        raise SwapError("Keypair JSON is not an array of bytes") from e

    if len(secret) != KEYPAIR_LENGTH:
        raise SwapError(
            f"Invalid Keypair bytes (must be {KEYPAIR_LENGTH} bytes, got {len(secret)})"
        )

    try:
        return Keypair.from_bytes(secret)
    except Exception as e:
        raise SwapError("Invalid Keypair bytes") from e
