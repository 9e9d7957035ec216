"""
Async HTTP client for the FIO chain API.

Every method takes the node to query explicitly; node selection and
retries belong to the caller. Any failure of a single call (HTTP status,
timeout, connection error, unparseable or unexpected body) surfaces as
ChainAPIError.
"""
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from src.config.snapshot_settings import REQUEST_TIMEOUT_SECONDS
from src.utils.logger import logger

from .exceptions import ChainAPIError
from .schemas import (
    AccountMapRow,
    FioBalance,
    LockedTokensRow,
    ProducerRow,
    ProducersResponse,
    TableRowsResponse,
    VotersPage,
)

M = TypeVar("M", bound=BaseModel)


class ChainAPIClient:
    """
    HTTP client for the chain query endpoints used by the snapshot.

    Provides methods to:
    - Scan the voters table page by page
    - Fetch the producer list
    - Look up an account's public key, balance and locked-token grant
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the chain API client.

        Args:
            timeout: Per-request timeout in seconds; a timeout is a failed call
            transport: Optional transport override (tests use httpx.MockTransport)
        """
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _handle_response(self, node: str, response: httpx.Response) -> Any:
        """
        Parse a response body and raise on error statuses.

        Raises:
            ChainAPIError: On status >= 400 or a body that is not JSON
        """
        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            error_msg = "Unknown error"
            if isinstance(data, dict):
                error_msg = data.get("message", error_msg)
                # Nodes put the useful detail under error.what
                error = data.get("error")
                if isinstance(error, dict) and error.get("what"):
                    error_msg = error["what"]
            raise ChainAPIError(error_msg, response.status_code, node, data if isinstance(data, dict) else None)

        if data is None:
            raise ChainAPIError("Failed to parse response", 502, node, {"raw": response.text[:200]})

        return data

    async def _post(self, node: str, path: str, payload: Dict[str, Any]) -> Any:
        url = f"{node}{path}"
        logger.debug(f"[ChainAPI] POST {url} {payload}")
        try:
            response = await self.client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise ChainAPIError(f"Request timed out: {e!r}", 504, node) from e
        except httpx.TransportError as e:
            raise ChainAPIError(f"Connection error: {e!r}", 503, node) from e
        return self._handle_response(node, response)

    @staticmethod
    def _parse(node: str, model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ChainAPIError(
                f"Malformed {model.__name__} response: {e.error_count()} validation error(s)",
                502,
                node,
            ) from e

    async def get_table_rows(self, node: str, **query: Any) -> TableRowsResponse:
        payload = {"json": True, **query}
        data = await self._post(node, "/v1/chain/get_table_rows", payload)
        return self._parse(node, TableRowsResponse, data)

    async def get_voters_page(self, node: str, lower_bound: int, limit: int) -> VotersPage:
        """
        Fetch one page of the eosio voters table.

        Args:
            node: Node base URL
            lower_bound: Smallest voter id to return
            limit: Maximum rows in the page

        Returns:
            VotersPage with parsed rows and the ``more`` flag
        """
        data = await self._post(node, "/v1/chain/get_table_rows", {
            "json": True,
            "code": "eosio",
            "scope": "eosio",
            "table": "voters",
            "lower_bound": str(lower_bound),
            "limit": limit,
        })
        return self._parse(node, VotersPage, data)

    async def get_producers(self, node: str, limit: int) -> List[ProducerRow]:
        data = await self._post(node, "/v1/chain/get_producers", {"json": True, "limit": limit})
        return self._parse(node, ProducersResponse, data).producers

    async def get_account_public_key(self, node: str, owner: str) -> Optional[str]:
        """Return the public key mapped to ``owner``, or None when no row matches."""
        table = await self.get_table_rows(
            node,
            code="fio.address",
            scope="fio.address",
            table="accountmap",
            lower_bound=owner,
            upper_bound=owner,
            limit=1,
        )
        for raw in table.rows:
            row = self._parse(node, AccountMapRow, raw)
            if row.account == owner:
                return row.clientkey
        return None

    async def get_fio_balance(self, node: str, public_key: str) -> FioBalance:
        data = await self._post(node, "/v1/chain/get_fio_balance", {"fio_public_key": public_key})
        return self._parse(node, FioBalance, data)

    async def get_locked_tokens(self, node: str, owner: str) -> Optional[LockedTokensRow]:
        """Return the lockedtokens row owned by ``owner``, or None when there is none."""
        table = await self.get_table_rows(
            node,
            code="eosio",
            scope="eosio",
            table="lockedtokens",
            lower_bound=owner,
            upper_bound=owner,
            limit=1,
        )
        for raw in table.rows:
            row = self._parse(node, LockedTokensRow, raw)
            if row.owner == owner:
                return row
        return None

    async def aclose(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
