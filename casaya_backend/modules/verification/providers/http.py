"""HTTP plumbing shared by the provider clients.

Maps transport and status failures onto the two provider error kinds:
transient ones (timeouts, connection errors, 5xx, 429) become
``ProviderUnavailableError``; any other 4xx is a ``ProviderRejectedError``.
"""

from typing import Any

import httpx

from ....core.exceptions import ProviderRejectedError, ProviderUnavailableError
from ....core.logging import get_logger

logger = get_logger(__name__)


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"body": response.text[:500]}
    return body if isinstance(body, dict) else {"body": body}


def raise_for_provider_status(
    service_name: str, operation: str, response: httpx.Response
) -> None:
    """Raise the matching provider error for a non-2xx response."""
    if response.is_success:
        return

    details = {"status_code": response.status_code, **_error_body(response)}
    if response.status_code >= 500 or response.status_code == 429:
        logger.warning(
            f"{service_name} {operation} unavailable: HTTP {response.status_code}"
        )
        raise ProviderUnavailableError(service_name, operation, details)

    logger.info(f"{service_name} {operation} rejected: HTTP {response.status_code}")
    raise ProviderRejectedError(service_name, operation, details)


async def post_json(
    service_name: str,
    operation: str,
    url: str,
    timeout: float,
    **kwargs,
) -> dict[str, Any]:
    """POST to a provider and return the decoded JSON body."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, **kwargs)
    except httpx.TimeoutException:
        logger.warning(f"{service_name} {operation} timed out after {timeout}s")
        raise ProviderUnavailableError(service_name, operation, {"error": "timeout"})
    except httpx.RequestError as e:
        logger.warning(f"{service_name} {operation} request failed: {e}")
        raise ProviderUnavailableError(service_name, operation, {"error": str(e)})

    raise_for_provider_status(service_name, operation, response)
    try:
        return response.json()
    except ValueError:
        raise ProviderUnavailableError(
            service_name, operation, {"error": "invalid JSON response"}
        )
