"""
iXR Library Python Client - Basic Usage Example

Logs in lazily on the first call, then records a short training session.
Without a reachable API every call ends in one of the library's error kinds.
"""

import asyncio
import logging

from ixrlib import (
    AsyncIXRClient,
    AuthRequest,
    FileStorage,
    IXRClient,
    IXRConfig,
    IXRError,
    ResultOptions,
    RetryConfig,
)


AUTH = AuthRequest(
    app_id="00000000-0000-0000-0000-000000000000",
    org_id="example-org",
    device_id="headset-01",
    auth_secret="example-secret",
    device_model="Quest 3",
)


def sync_example():
    """Synchronous client example."""
    print("=== Sync Client Example ===\n")

    config = IXRConfig(
        retry=RetryConfig(max_retries=2, base_delay_ms=250),
        storage=FileStorage(),
        debug=True,
    )

    with IXRClient(AUTH, config) as client:
        try:
            client.collect.level_start("intro")
            client.collect.event("button_pressed", "hand=left,target=door")
            client.collect.telemetry("frame_rate", {"fps": 72})
            client.collect.assessment_complete("safety_quiz", 92, ResultOptions.PASS)
            client.storage.set_entry({"checkpoint": "3"})
            print(f"Saved state: {client.storage.get_entry().data}")
        except IXRError as e:
            print(f"Request failed ({e.code}): {e.message}")


async def async_example():
    """Asynchronous client example."""
    print("\n=== Async Client Example ===\n")

    async with AsyncIXRClient(AUTH, IXRConfig.from_env()) as client:
        try:
            await asyncio.gather(
                client.collect.log_info("session started"),
                client.collect.objective_start("open_valve"),
                client.collect.interaction_complete("valve_handle", 1),
            )
            answer = await client.services.llm("What should I check before opening the valve?")
            print(f"Assistant: {answer.data}")
        except IXRError as e:
            print(f"Request failed ({e.code}): {e.message}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    sync_example()
    asyncio.run(async_example())
