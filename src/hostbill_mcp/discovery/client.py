"""Async HTTP client for the HostBill administrative API.

Every HostBill call is a form-encoded POST to ``<base_url>/api.php`` carrying
``call``, ``api_id`` and ``api_key`` plus the call's own arguments. Responses
are JSON objects; an ``error`` key means the call failed.

Example:
    >>> from hostbill_mcp.discovery.client import HostBillClient
    >>> async with HostBillClient("https://billing.example.com", "id", "key") as client:
    ...     if await client.test_connection():
    ...         methods = await client.list_methods()
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

import httpx

from hostbill_mcp import __version__
from hostbill_mcp.errors import DiscoveryError, HostBillAPIError
from hostbill_mcp.observability import get_logger, sanitize_for_logging
from hostbill_mcp.utils.sanitization import sanitize_url

logger = get_logger(__name__)

API_PATH = "/api.php"
DEFAULT_TIMEOUT = 30.0
USER_AGENT = f"hostbill-mcp/{__version__}"

# HostBill introspection calls
CALL_PING = "ping"
CALL_LIST_METHODS = "getAPIMethods"
CALL_METHOD_DETAILS = "getAPIMethodDetails"
CALL_SERVER_INFO = "getServerInfo"

# Form fields owned by the client; callers may not override them
RESERVED_FIELDS = frozenset({"call", "api_id", "api_key"})


def encode_form_args(args: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten call arguments into PHP-style form fields.

    Nested dicts and lists become ``key[sub]`` / ``key[0]`` fields, booleans
    become "1"/"0" and None values are dropped.

    Example:
        >>> encode_form_args({"id": 5, "tags": ["a", "b"]})
        [('id', '5'), ('tags[0]', 'a'), ('tags[1]', 'b')]
    """
    fields: list[tuple[str, str]] = []
    for key, value in args.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            fields.extend(encode_form_args(value, name))
        elif isinstance(value, (list, tuple)):
            fields.extend(encode_form_args(dict(enumerate(value)), name))
        elif isinstance(value, bool):
            fields.append((name, "1" if value else "0"))
        else:
            fields.append((name, str(value)))
    return fields


class HostBillClient:
    """Capability source backed by the HostBill HTTP API.

    Implements ``CapabilitySource``. The client holds no cache of its own;
    discovery results are memoized per session by ``DiscoveryCache``.

    Attributes:
        base_url: HostBill base URL without trailing slash.
    """

    def __init__(
        self,
        base_url: str,
        api_id: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: HostBill instance URL (trailing slash is stripped).
            api_id: HostBill API id.
            api_key: HostBill API key.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport for tests (e.g. MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self._api_id = api_id
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
            headers={
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    async def __aenter__(self) -> HostBillClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, call: str, args: dict[str, Any] | None = None) -> dict[str, Any]:
        """Perform one HostBill API call and return the decoded JSON body.

        Raises:
            HostBillAPIError: On transport failure, non-2xx status, undecodable
                body or an ``error`` key in the response.
        """
        args = dict(args or {})
        dropped = sorted(RESERVED_FIELDS.intersection(args))
        for key in dropped:
            del args[key]
        if dropped:
            logger.warning("hostbill.request.reserved_fields_dropped", call=call, fields=dropped)
        fields = [("call", call), ("api_id", self._api_id), ("api_key", self._api_key)]
        fields.extend(encode_form_args(args))
        logger.debug(
            "hostbill.request",
            url=sanitize_url(self.base_url),
            call=call,
            args=sanitize_for_logging(args),
        )

        try:
            response = await self._client.post(
                self.base_url + API_PATH,
                content=urlencode(fields),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise HostBillAPIError(call, f"Request failed: {e}") from e

        if not response.is_success:
            raise HostBillAPIError(
                call, f"HTTP Error: {response.status_code}", status_code=response.status_code
            )

        try:
            decoded = response.json()
        except ValueError as e:
            raise HostBillAPIError(
                call, f"Invalid JSON response: {e}", status_code=response.status_code
            ) from e

        if not isinstance(decoded, dict):
            raise HostBillAPIError(
                call, "Invalid JSON response: expected an object", status_code=response.status_code
            )
        if decoded.get("error"):
            error = decoded["error"]
            if isinstance(error, list):
                error = "; ".join(str(item) for item in error)
            raise HostBillAPIError(
                call, f"API Error: {error}", status_code=response.status_code
            )
        return decoded

    async def test_connection(self) -> bool:
        """Return True if HostBill answers a ping with these credentials."""
        try:
            await self.request(CALL_PING)
        except HostBillAPIError as e:
            logger.warning("hostbill.ping.failed", error=e.message)
            return False
        return True

    async def list_methods(self) -> list[str]:
        """Return the API method names the credentials may call.

        Raises:
            HostBillAPIError: If the request fails.
            DiscoveryError: If the response carries no method list.
        """
        response = await self.request(CALL_LIST_METHODS)
        methods = response.get("methods")
        if isinstance(methods, dict):
            # Some HostBill versions key the list by method name
            methods = list(methods.keys())
        if not isinstance(methods, list):
            raise DiscoveryError("Failed to retrieve API methods")
        return [str(m) for m in methods if m]

    async def get_method_details(self, name: str) -> dict[str, Any]:
        """Return the raw ``details`` record for one method.

        Raises:
            HostBillAPIError: If the request fails.
            DiscoveryError: If the response carries no details.
        """
        response = await self.request(CALL_METHOD_DETAILS, {"method": name})
        details = response.get("details")
        if not isinstance(details, dict):
            raise DiscoveryError(f"No details available for {name}", details={"method": name})
        return details

    async def invoke(self, name: str, args: dict[str, Any]) -> Any:
        """Call API method ``name`` with ``args`` and return the decoded body."""
        return await self.request(name, args)

    async def server_info(self) -> dict[str, Any]:
        """Return HostBill server information, or ``{"error": message}``."""
        try:
            return await self.request(CALL_SERVER_INFO)
        except HostBillAPIError as e:
            return {"error": e.message}
