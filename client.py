"""
Client side of the owner's "my properties" list.

ProfileProperties keeps its own copy of the owner's listings and removes an
entry only after the server confirms the delete.
"""

import enum
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

CONFIRM_MESSAGE = "Are you sure you want to delete this property?"


class DeleteResult(BaseModel):
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class PropertiesClient:
    def __init__(self, base_url: str, *, client: Optional[httpx.Client] = None,
                 headers: Optional[Dict[str, str]] = None, timeout: float = 30.0):
        self._client = client or httpx.Client(base_url=base_url, headers=headers, timeout=timeout)

    def list_mine(self) -> List[Dict[str, Any]]:
        response = self._client.get("/api/properties/mine")
        response.raise_for_status()
        return response.json()

    def delete_property(self, property_id: str) -> DeleteResult:
        try:
            response = self._client.delete(f"/api/properties/{property_id}")
        except httpx.HTTPError as exc:
            logger.warning("Delete of %s failed: %s", property_id, exc)
            return DeleteResult(ok=False, error=f"Could not reach the server: {exc}")

        # 404: already gone, or never ours; either way it is not on the server
        if response.is_success or response.status_code == 404:
            return DeleteResult(ok=True, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        return DeleteResult(
            ok=False,
            status_code=response.status_code,
            error=str(detail or f"Delete failed with status {response.status_code}"),
        )

    def close(self) -> None:
        self._client.close()


class DeletionState(enum.Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    DELETING = "deleting"


class ProfileProperties:
    def __init__(self, properties: List[Dict[str, Any]], api: PropertiesClient,
                 confirm: Callable[[str], bool]):
        self.properties = list(properties)
        self.api = api
        self.confirm = confirm
        self.state = DeletionState.IDLE
        self.error: Optional[str] = None

    def handle_delete(self, property_id: str) -> bool:
        """Ask for confirmation, delete remotely, then drop the entry locally.

        Returns True when the entry is no longer on the server.
        """
        self.error = None
        self.state = DeletionState.CONFIRMING
        if not self.confirm(CONFIRM_MESSAGE):
            self.state = DeletionState.IDLE
            return False

        self.state = DeletionState.DELETING
        try:
            result = self.api.delete_property(property_id)
        finally:
            self.state = DeletionState.IDLE

        if not result.ok:
            self.error = result.error
            return False

        self.properties = [p for p in self.properties if _property_id(p) != property_id]
        return True


def _property_id(prop: Dict[str, Any]) -> Optional[str]:
    value = prop.get("id", prop.get("_id"))
    return str(value) if value is not None else None
