"""
Simple Setto SDK Example.

Opens the dev wallet for a small payment and waits for the app to receive the
callback. Paste the callback URL the wallet redirects to (e.g.
``setto-merchant-123://callback?status=success&payment_id=...``) when prompted.
"""
import asyncio

from setto_sdk import PaymentRequest, SettoClient, SettoConfig, SettoEnvironment, setup_logging


async def main():
    setup_logging("DEBUG")
    print("🚀 Initializing Setto SDK Client...")

    config = SettoConfig(merchant_id="merchant-123", environment=SettoEnvironment.DEV, debug=True)

    async with SettoClient(config) as client:
        payment = asyncio.create_task(client.pay(PaymentRequest(amount="1.00", order_id="demo-1")))

        # Stand-in for the OS delivering the deep link to the app
        callback_url = await asyncio.to_thread(input, "Callback URL: ")
        if not client.handle_callback(callback_url.strip()):
            print("❌ Not a Setto callback URL")
            payment.cancel()
            return

        result = await payment
        print(f"✅ Payment finished: {result.status.value}")
        if result.tx_hash:
            print(f"   Transaction: {result.tx_hash}")
        if result.error:
            print(f"   Error: {result.error}")


if __name__ == "__main__":
    asyncio.run(main())
