"""Example demonstrating request/response interceptors."""

import asyncio
import time
import uuid

from curlish import CurlClient


class Stats:
    def __init__(self):
        self.request_count = 0
        self.total_ms = 0.0


async def main():
    stats = Stats()

    async with CurlClient() as client:

        def add_request_id(request):
            """Tag every outgoing request."""
            request.headers["X-Request-ID"] = uuid.uuid4().hex
            stats.request_count += 1
            print(f"-> {request.method} {request.url}")
            return request

        async def log_response(response):
            """Log responses with timing."""
            stats.total_ms += response.timing.total_ms
            marker = "ok" if response.ok else "error"
            print(f"<- {response.status} {marker} ({response.timing.total_ms:.0f}ms)")
            return response

        client.interceptors.request.use(add_request_id)
        log_id = client.interceptors.response.use(log_response)

        users = await client.get("https://jsonplaceholder.typicode.com/users", query={"_limit": 3})
        for user in users.data:
            await client.get(
                f"https://jsonplaceholder.typicode.com/users/{user['id']}/posts",
                query={"_limit": 2},
            )

        # Ejected handlers become no-ops; other ids stay valid
        client.interceptors.response.eject(log_id)
        started = time.perf_counter()
        await client.get("https://jsonplaceholder.typicode.com/posts/1")
        print(f"Unlogged request took {(time.perf_counter() - started) * 1000:.0f}ms")

    average = stats.total_ms / stats.request_count if stats.request_count else 0
    print(f"\nRequests: {stats.request_count}, average logged time: {average:.0f}ms")


if __name__ == "__main__":
    asyncio.run(main())
