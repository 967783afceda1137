"""
REST client for the remote time-record store.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from pendulum import Date
from pydantic import ValidationError

from ..domain.exceptions import RecordStoreError
from .records import SlotRecommendation, TimeRecord

logger = logging.getLogger(__name__)


class TimeRecordClient:
    """
    Client for the ``/timeRecord`` endpoints of the dashboard backend.

    The HTTP calls are blocking ``requests`` calls; the async methods run
    them in a worker thread so a slow backend never blocks the caller's
    event loop.
    """

    QUERY_PATH = "/timeRecord/query"
    SAVE_PATH = "/timeRecord/save"
    UPDATE_PATH = "/timeRecord/update"
    DELETE_PATH = "/timeRecord/delete"
    DELETE_BY_DATE_PATH = "/timeRecord/deleteByDate"
    QUERY_FOR_WEEK_PATH = "/timeRecord/queryForWeek"
    RECOMMEND_TYPE_PATH = "/timeRecord/recommendType"
    RECOMMEND_NEXT_PATH = "/timeRecord/recommendNext"

    def __init__(
        self,
        base_url: str,
        access_token: str = "",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Backend root URL, e.g. ``https://dashboard.example.com/api``
            access_token: Optional bearer token
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    async def query(self, date: Date) -> List[TimeRecord]:
        """Fetch all records of one day."""
        data = await asyncio.to_thread(self._post, self.QUERY_PATH, {"date": date.isoformat()})
        return self._parse_records(data)

    async def save(self, record: TimeRecord) -> None:
        await asyncio.to_thread(self._post, self.SAVE_PATH, record.to_payload())

    async def update(self, record: TimeRecord) -> None:
        await asyncio.to_thread(self._post, self.UPDATE_PATH, record.to_payload())

    async def delete(self, record_id: str) -> None:
        await asyncio.to_thread(self._post, self.DELETE_PATH, {"id": record_id})

    async def delete_by_date(self, date: Date) -> None:
        await asyncio.to_thread(self._post, self.DELETE_BY_DATE_PATH, {"date": date.isoformat()})

    async def query_for_week(self, date: Date) -> List[TimeRecord]:
        """Fetch all records of the week containing ``date``."""
        data = await asyncio.to_thread(self._post, self.QUERY_FOR_WEEK_PATH, {"date": date.isoformat()})
        return self._parse_records(data)

    async def recommend_type(self, date: Date, time: int) -> Optional[str]:
        """Ask the backend which category usually fills ``time`` on ``date``."""
        data = await asyncio.to_thread(
            self._get, self.RECOMMEND_TYPE_PATH, {"date": date.isoformat(), "time": time}
        )
        return str(data) if data else None

    async def recommend_next(self, date: Date) -> Optional[SlotRecommendation]:
        """Ask the backend for the slot most likely to come next on ``date``."""
        data = await asyncio.to_thread(self._get, self.RECOMMEND_NEXT_PATH, {"date": date.isoformat()})
        if not data:
            return None

        try:
            return SlotRecommendation.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring malformed slot recommendation: %s", e)
            return None

    def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        """
        POST a JSON payload and return the unwrapped response body.

        Raises:
            RecordStoreError: If the request fails or the backend reports an error
        """
        url = f"{self.base_url}{path}"

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise RecordStoreError(f"Request to {path} failed: {e}") from e

        return self._read_body(response, path)

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        """
        GET with query parameters and return the unwrapped response body.

        Raises:
            RecordStoreError: If the request fails or the backend reports an error
        """
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise RecordStoreError(f"Request to {path} failed: {e}") from e

        return self._read_body(response, path)

    def _read_body(self, response: requests.Response, path: str) -> Any:
        if not response.content:
            return None

        try:
            body = response.json()
        except ValueError as e:
            raise RecordStoreError(f"Invalid JSON from {path}: {e}") from e

        return self._unwrap(body, path)

    @staticmethod
    def _unwrap(body: Any, path: str) -> Any:
        """
        Strip the ``{"code": 0, "data": ...}`` envelope if present.

        Raw bodies are returned as-is.
        """
        if isinstance(body, dict) and "code" in body and "data" in body:
            if body["code"] not in (0, 200):
                message = body.get("message") or body.get("msg") or "Unknown error"
                raise RecordStoreError(f"{path} failed with code {body['code']}: {message}")
            return body["data"]
        return body

    @staticmethod
    def _parse_records(data: Any) -> List[TimeRecord]:
        if isinstance(data, dict):
            items = data.get("items", [])
        else:
            items = data or []

        records: List[TimeRecord] = []
        for item in items:
            try:
                records.append(TimeRecord.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed time record: %s", e)
                continue

        return records
