"""Create a dataset and load data into it.

Demonstrates:
- Loading configuration from tdx.toml / TDX_* environment variables
- Creating a dataset and waiting until its index is built
- Adding documents once the dataset is usable

    create ──▶ pending ──▶ building ──▶ built ──▶ add data
"""
import asyncio

from tdx_command import LogConfig, TdxClient, load_config

SCHEMA = {
    "name": "temperature readings",
    "basedOnSchema": "dataset",
    "schema": {
        "dataSchema": {"timestamp": "number", "temperature": "number"},
        "uniqueIndex": [{"asc": "timestamp"}],
    },
}


async def main() -> None:
    async with TdxClient(load_config(), logging=LogConfig(console=True)) as tdx:
        ack = await tdx.commands.create_dataset(SCHEMA)
        print(f"dataset {ack.resource_id} is built")

        await tdx.commands.add_dataset_data(
            ack.resource_id,
            [{"timestamp": t, "temperature": 20 + t / 10} for t in range(10)],
        )


if __name__ == "__main__":
    asyncio.run(main())
