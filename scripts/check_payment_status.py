"""Quick debug script to query a payment's status with the .env configuration."""
import asyncio
import sys

from setto_sdk import SettoClient, load_settings


async def check_status(payment_id: str):
    """Print the server-side status of ``payment_id``."""
    settings = load_settings()
    config = settings.to_config()

    print(f"Merchant: {config.merchant_id}")
    print(f"Environment: {config.environment.value} ({config.base_url})\n")

    async with SettoClient(config) as client:
        response = await client.get_payment_status(payment_id)

    if response.ok:
        info = response.info
        print(f"✅ {info.payment_id}: {info.status}")
        print(f"   Amount: {info.amount} {info.currency}")
        print(f"   Transaction: {info.tx_hash or '-'}")
    else:
        print(f"❌ Status query failed: {response.error}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/check_payment_status.py <payment_id>")
        sys.exit(1)
    asyncio.run(check_status(sys.argv[1]))
