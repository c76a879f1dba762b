"""Basic curlish usage against JSONPlaceholder."""

import asyncio

from curlish import CurlClient, setup_logging


async def main():
    setup_logging("INFO")

    async with CurlClient() as client:
        # Get posts
        print("Fetching posts...")
        response = await client.request("https://jsonplaceholder.typicode.com/posts") \
            .query({"_limit": 5}) \
            .timeout(5000) \
            .get()
        for post in response.data:
            print(f"- {post['title']}")

        print("\n" + "=" * 50 + "\n")

        # Get single post
        print("Fetching post #1...")
        post = await client.get("https://jsonplaceholder.typicode.com/posts/1")
        print(f"Title: {post.data['title']}")
        print(f"Took {post.timing.total_ms:.0f}ms")

        print("\n" + "=" * 50 + "\n")

        # Create a post
        print("Creating a new post...")
        created = await client.post(
            "https://jsonplaceholder.typicode.com/posts",
            {"title": "Hello from curlish!", "body": "Sent with a JSON body.", "userId": 1},
        )
        print(f"{created.status} {created.status_text}: created post with ID {created.data['id']}")


if __name__ == "__main__":
    asyncio.run(main())
