"""
AutoDiscoverClient — resolves a user-supplied server URL into its
connection details via the server's auto-discover endpoint.

The client never raises for network or payload problems: any failure is
logged and reported as ``None`` so the front-end can fall back to asking
the user.  Retries, if wanted, are the caller's concern.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from refresher.core.config import settings
from refresher.core.logging import get_logger
from refresher.pipeline.cancellation import CancellationToken

logger = get_logger(__name__)


class AutoDiscoverResponse(BaseModel):
    """Payload served by ``<server>/autodiscover``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: int
    server_brand: str
    url: str
    uses_custom_digest_key: bool = False
    server_description: str | None = None
    banner_image_url: str | None = None


def normalize_server_url(url: str) -> str:
    """Add a scheme when missing and strip trailing slashes."""
    url = url.strip()
    if "://" not in url:
        url = f"http://{url}"
    return url.rstrip("/")


class AutoDiscoverClient:
    """Thin async HTTP client for the auto-discover endpoint."""

    def __init__(
        self,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.AUTODISCOVER_TIMEOUT
        self._http_client = http_client

    async def invoke_auto_discover_async(
        self,
        url: str,
        token: CancellationToken | None = None,
    ) -> AutoDiscoverResponse | None:
        """
        Query ``<url>/autodiscover``.

        Returns the parsed response, or None when the server is unreachable,
        answers with a non-2xx status, or serves an invalid payload.
        Raises OperationCancelledError if ``token`` is cancelled.
        """
        token = token or CancellationToken()
        token.raise_if_cancelled()

        endpoint = normalize_server_url(url) + settings.AUTODISCOVER_PATH
        log = logger.bind(endpoint=endpoint)
        log.info("Invoking auto-discover")

        try:
            if self._http_client is not None:
                response = await self._http_client.get(endpoint, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(endpoint)
            response.raise_for_status()
            payload = AutoDiscoverResponse.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            log.warning("Auto-discover returned an error status", status_code=exc.response.status_code)
            return None
        except httpx.HTTPError as exc:
            log.warning("Auto-discover request failed", error=str(exc))
            return None
        except (ValidationError, ValueError) as exc:
            log.warning("Auto-discover payload was invalid", error=str(exc))
            return None

        token.raise_if_cancelled()

        log.info(
            "Auto-discover succeeded",
            server_brand=payload.server_brand,
            server_url=payload.url,
        )
        return payload
