"""
Remote store adapters - Where saved mind maps live.

The persistence gateway depends only on the RemoteStore protocol:
create / update / get_one / get_full_list over plain record dicts.

Two implementations:
- PocketBaseStore: a PocketBase-style REST collection, via httpx
- InMemoryStore: in-process records, for offline sessions and tests

Adapters translate transport failures into PersistenceError subclasses.
"""

import copy
import itertools
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx

from .errors import (
    DiagramNotFoundError,
    RemoteUnavailableError,
    RemoteValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "mindmaps"
PAGE_SIZE = 500


class RemoteStore(Protocol):
    """The narrow CRUD contract the persistence gateway relies on."""

    async def create(self, data: dict) -> dict: ...

    async def update(self, record_id: str, data: dict) -> dict: ...

    async def get_one(self, record_id: str) -> dict: ...

    async def get_full_list(self, sort: str = "-created") -> list[dict]: ...


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from a PocketBase error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "Unknown error"
    if isinstance(body, dict):
        return body.get("message") or body.get("detail") or "Unknown error"
    return "Unknown error"


class PocketBaseStore:
    """
    A record collection on a PocketBase server.

    Maps the store contract onto the collection records API:
    - create:        POST  /api/collections/{collection}/records
    - update:        PATCH /api/collections/{collection}/records/{id}
    - get_one:       GET   /api/collections/{collection}/records/{id}
    - get_full_list: GET   /api/collections/{collection}/records (all pages)
    """

    def __init__(
        self,
        base_url: str,
        collection: str = DEFAULT_COLLECTION,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._collection = collection
        self._timeout = timeout
        self._transport = transport

    def _url(self, record_id: Optional[str] = None) -> str:
        url = f"{self._base_url}/api/collections/{self._collection}/records"
        if record_id is not None:
            url = f"{url}/{record_id}"
        return url

    async def _request(self, method: str, record_id: Optional[str] = None, **kwargs):
        """Make a request to the records API and return the decoded body."""
        url = self._url(record_id)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteUnavailableError(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            raise RemoteUnavailableError(f"Connection failed: {e}") from e

        if response.status_code == 404 and record_id is not None:
            raise DiagramNotFoundError(record_id)
        if response.status_code >= 500:
            raise RemoteUnavailableError(
                f"Remote store error ({response.status_code}): {_error_message(response)}"
            )
        if response.status_code >= 400:
            raise RemoteValidationError(
                f"Remote store rejected request ({response.status_code}): {_error_message(response)}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteValidationError(f"Remote store returned invalid JSON from {url}") from e

    async def create(self, data: dict) -> dict:
        return await self._request("POST", json=data)

    async def update(self, record_id: str, data: dict) -> dict:
        return await self._request("PATCH", record_id, json=data)

    async def get_one(self, record_id: str) -> dict:
        return await self._request("GET", record_id)

    async def get_full_list(self, sort: str = "-created") -> list[dict]:
        """Fetch every record, following pagination."""
        items: list[dict] = []
        page = 1
        while True:
            data = await self._request(
                "GET", params={"page": page, "perPage": PAGE_SIZE, "sort": sort}
            )
            if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
                raise RemoteValidationError("Remote store returned a malformed record list")
            total_pages = data.get("totalPages", 1)
            if isinstance(total_pages, bool) or not isinstance(total_pages, int):
                raise RemoteValidationError(f"Remote store returned invalid totalPages: {total_pages!r}")

            items.extend(data.get("items", []))
            if page >= total_pages:
                break
            page += 1
        return items


class InMemoryStore:
    """
    Records kept in process memory.

    Records are deep-copied in and out, so callers never share state with
    the store, the same as with a real remote.
    """

    def __init__(self):
        self._records: dict[str, dict] = {}
        self._order: dict[str, int] = {}
        self._sequence = itertools.count()

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3] + "Z"

    def _get(self, record_id: str) -> dict:
        record = self._records.get(record_id)
        if record is None:
            raise DiagramNotFoundError(record_id)
        return record

    async def create(self, data: dict) -> dict:
        record_id = uuid.uuid4().hex[:15]
        now = self._timestamp()
        record = {**copy.deepcopy(data), "id": record_id, "created": now, "updated": now}
        self._records[record_id] = record
        self._order[record_id] = next(self._sequence)
        logger.debug("Created record %s", record_id)
        return copy.deepcopy(record)

    async def update(self, record_id: str, data: dict) -> dict:
        record = self._get(record_id)
        record.update(copy.deepcopy(data))
        record["id"] = record_id
        record["updated"] = self._timestamp()
        return copy.deepcopy(record)

    async def get_one(self, record_id: str) -> dict:
        return copy.deepcopy(self._get(record_id))

    async def get_full_list(self, sort: str = "-created") -> list[dict]:
        descending = sort.startswith("-")
        field = sort.lstrip("-+") or "created"
        records = sorted(
            self._records.values(),
            key=lambda r: (str(r.get(field, "")), self._order[r["id"]]),
            reverse=descending,
        )
        return [copy.deepcopy(r) for r in records]

    def __len__(self) -> int:
        return len(self._records)
