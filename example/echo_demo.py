import asyncio
import logging

from forwarding import CallTimeoutError, ClientConfig, RemoteError, create_client

async def main():
    # Connects as a flutter client to the forwarding server named by
    # FORWARDING_SERVER_HOST / FORWARDING_SERVER_PORT (localhost:8143 by default)
    config = ClientConfig.from_env()
    logging.basicConfig(level=config.logging_level())

    client = create_client("flutter", config=config, methods={
        "echo": lambda params: params,
    })
    client.on("disconnected", lambda event: print("Lost connection to", event.url))

    await client.connect()
    print("Connected as", client.client_id)

    # Another client (e.g. an inspector) must be connected and serve the method
    try:
        result = await client.call_method("flutter.test.ping", {}, timeout=5.0)
        print("Ping result:", result)
    except RemoteError as e:
        print("Ping failed (expected if nothing answers it):", e)
    except CallTimeoutError as e:
        print("No answer within 5s:", e)

    # Keep answering calls until interrupted
    try:
        await asyncio.Event().wait()
    finally:
        await client.disconnect()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
