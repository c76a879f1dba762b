"""Retries, timeouts and cancellation."""

import asyncio

from curlish import (
    CancellationToken,
    ClientSettings,
    CurlClient,
    RequestCancelledError,
    RequestTimeoutError,
    RetryConfig,
    setup_logging,
)


def report_retry(attempt, error):
    print(f"  attempt {attempt} failed: {error}")


async def main():
    # Retry warnings are logged by the executor
    setup_logging("WARNING")

    settings = ClientSettings(
        timeout_ms=10_000,
        retry=RetryConfig(count=2, delay_ms=200, status_codes=[429, 502, 503, 504]),
    )

    async with CurlClient(settings) as client:
        # httpbin returns a random status from the list on each call
        print("Retrying on 503...")
        response = await client.request("https://httpbin.org/status/503,200") \
            .retry(4, backoff="linear", delay_ms=100, status_codes=[503], on_retry=report_retry) \
            .get()
        print(f"Finished with {response.status} after {response.attempts} attempt(s)")

        print("\nTimeout...")
        try:
            await client.request("https://httpbin.org/delay/3").timeout(500).get()
        except RequestTimeoutError as e:
            print(f"  {e}")

        print("\nCancellation...")
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.2, token.cancel, "user navigated away")
        try:
            await client.request("https://httpbin.org/delay/3").abort(token).get()
        except RequestCancelledError as e:
            print(f"  {e}")


if __name__ == "__main__":
    asyncio.run(main())
