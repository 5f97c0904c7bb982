"""Feed several datasets in one call and inspect per-item failures.

The remote processes every item even when some fail, and reports all failures
as one message separated by "|".
"""
import asyncio

from tdx_command import CompositeBatchError, TdxClient, load_config

FEED = [
    {"id": "tempSensor1", "d": {"timestamp": 123, "temperature": 12.3}},
    {"id": "tempSensor2", "d": {"timestamp": 123, "temperature": 12.8}},
    {"id": "co2Sensor", "d": {"timestamp": 123, "co2": 587.6}},
]


async def main() -> None:
    async with TdxClient(load_config()) as tdx:
        try:
            await tdx.commands.add_datasets_data(FEED)
        except CompositeBatchError as e:
            for failure in e.failures():
                print(f"failed: {failure}")


if __name__ == "__main__":
    asyncio.run(main())
