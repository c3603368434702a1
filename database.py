"""
MongoDB access for property documents.

The connection is opened once at startup and kept on app.state; request
handlers receive it through get_database() instead of importing a global.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, Request
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient
from pymongo.database import Database

from config import Settings

logger = logging.getLogger(__name__)

PROPERTY_COLLECTION = "property"


class PropertyNotFound(Exception):
    """No property matched the id (and owner, for deletes)."""


class StoreUnavailable(Exception):
    """The document store is not configured or not reachable."""


def connect(settings: Settings) -> Optional[Database]:
    if not settings.database_configured:
        logger.warning("DATABASE_URL / DATABASE_NAME not set; store disabled")
        return None
    client = MongoClient(settings.database_url)
    logger.info("Connected to MongoDB database %s", settings.database_name)
    return client[settings.database_name]


def get_database(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise StoreUnavailable("Database is not configured")
    return db


def to_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid property id")


def _finite(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_finite(v) for v in value]
    return value


def to_public(doc):
    if not doc:
        return doc
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    # NaN from lenient numeric coercion is not valid JSON
    return _finite(d)


class PropertyRepository:
    """Create/find/delete against the "property" collection."""

    def __init__(self, db: Database, collection_name: str = PROPERTY_COLLECTION):
        self.collection = db[collection_name]

    def create(self, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(data, BaseModel):
            doc = data.model_dump(exclude_none=True)
        else:
            doc = dict(data)
        now = datetime.now(timezone.utc)
        doc["created_at"] = now
        doc["updated_at"] = now
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def find_by_id(self, property_id: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": to_object_id(property_id)})

    def find(self, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        cursor = self.collection.find(filter_dict or {}).sort("created_at", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def find_by_owner(self, owner: str) -> List[Dict[str, Any]]:
        return self.find({"owner": owner})

    def delete_by_id(self, property_id: str, owner: str) -> None:
        oid = to_object_id(property_id)
        res = self.collection.delete_one({"_id": oid, "owner": owner})
        if res.deleted_count != 1:
            raise PropertyNotFound(property_id)
