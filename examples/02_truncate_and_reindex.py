"""Truncate a dataset, then rebuild its index, with bounded waits.

A truncate waits twice: for the store to be replaced, then for the index
status to come back to what it was. Both phases share one budget.
"""
import asyncio
import sys

from tdx_command import (
    ConvergenceFailed,
    ConvergenceTimedOut,
    TdxClient,
    WaitOptions,
    load_config,
)


async def main(dataset_id: str) -> None:
    async with TdxClient(load_config()) as tdx:
        try:
            await tdx.commands.truncate_dataset(dataset_id, options=WaitOptions(timeout=120))
            await tdx.commands.rebuild_dataset_index(dataset_id, WaitOptions(timeout=600))
        except ConvergenceFailed as e:
            print(f"remote reported failure: {e.detail}")
        except ConvergenceTimedOut as e:
            print(f"gave up waiting for {e.goal} after {e.timeout}s")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1]))
