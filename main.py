# main.py
import asyncio
import sys

from rayswap.config import config
from rayswap.errors import SwapError, format_error
from rayswap.log import log_general
from rayswap.transactions import perform_swap


async def main() -> int:
    try:
        txids = await perform_swap(config())
    except SwapError as e:
        log_general.error(format_error(e))
        return 1

    log_general.info(f"Swap complete: {len(txids)} transaction(s) finalized")
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
