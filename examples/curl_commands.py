"""Run copied curl commands through curlish."""

import asyncio

from curlish import CurlClient, parse

COMMAND = """
curl -X POST https://jsonplaceholder.typicode.com/posts \\
  -H "Accept: application/json" \\
  -H "X-Request-Source: docs" \\
  -d '{"title":"From curl","body":"Parsed and sent","userId":1}'
"""


async def main():
    # Parsing never touches the network
    parsed = parse(COMMAND)
    print(f"{parsed.method} {parsed.url}")
    for name, value in parsed.headers.items():
        print(f"  {name}: {value}")
    print(f"  body: {parsed.body}")

    async with CurlClient() as client:
        # The builder returned by from_curl can be refined before sending
        response = await client.from_curl(COMMAND).timeout(5000).retry(2, delay_ms=250).send()
        print(f"\n{response.status} -> {response.data}")

        # Basic auth from -u
        response = await client.from_curl(
            "curl -u demo:secret https://httpbin.org/basic-auth/demo/secret"
        ).send()
        print(f"Authenticated: {response.data}")


if __name__ == "__main__":
    asyncio.run(main())
