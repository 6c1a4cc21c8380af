"""
apizel - Basic Usage Example

This example demonstrates the basic usage of apizel against a local API.
"""

import asyncio
import logging

from apizel import (
    AbortController,
    ApizelConfig,
    CancellationError,
    HttpError,
    NetworkError,
    apizel,
)


class Session:
    """Minimal token store for the example."""

    def __init__(self) -> None:
        self.access_token = "expired-token"
        self.refresh_token = "refresh-token"

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    session = Session()

    async def refresh() -> str:
        # The refresh call goes through the same client; a 401 here is not
        # retried again.
        data = await api.post("/auth/refresh", {"refresh_token": session.refresh_token})
        session.access_token = data["access_token"]
        return session.access_token

    def log_request(ctx) -> None:
        print(f"-> {ctx.method} {ctx.url}")

    def log_response(ctx) -> None:
        print(f"<- {ctx.response.status_code} {ctx.url}")

    api = apizel(ApizelConfig(
        base_url="http://localhost:8000/api",
        headers={"X-App": "example"},
        get_access_token=lambda: session.access_token,
        should_attach_token=lambda meta: meta.endpoint != "/auth/refresh",
        refresh=refresh,
        on_refresh_failed=session.clear,
        on_request=log_request,
        on_response=log_response,
        debug=True,
    ))

    async with api:
        try:
            me = await api.get("/me", params={"include": ["roles", "teams"]}, timeout_ms=5000)
            print(f"Logged in as: {me}")
        except HttpError as e:
            print(f"HTTP {e.status} from {e.url}: {e.data!r}")
        except CancellationError as e:
            print(f"Cancelled (timed_out={e.timed_out})")
        except NetworkError as e:
            print(f"Network error (expected without a local API): {e.message}")

        # Derived client for another service; the base client is untouched
        billing = api.extend(base_url="http://localhost:8001/billing", headers={"X-Service": "billing"})
        controller = AbortController()
        controller.abort("user navigated away")
        try:
            await billing.get("/invoices", signal=controller.signal)
        except CancellationError as e:
            print(f"Billing call cancelled: {e.reason}")
        finally:
            await billing.aclose()


if __name__ == "__main__":
    asyncio.run(main())
