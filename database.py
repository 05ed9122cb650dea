"""
Database connection

A single MongoClient is created for the whole process and the selected
database handle is injected into the repositories.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "konveksiDB")

logger = logging.getLogger(__name__)


def connect(url: str = DATABASE_URL, name: str = DATABASE_NAME) -> Database:
    """Open the client and ping the server so a bad URL fails at startup."""
    client = MongoClient(url, serverSelectionTimeoutMS=5000)
    client.admin.command("ping")
    logger.info("Connected to MongoDB database %s", name)
    return client[name]


def serialize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.get("_id")
    if isinstance(_id, ObjectId):
        doc["id"] = str(_id)
        del doc["_id"]
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
        elif isinstance(v, datetime) and v.tzinfo is None:
            # stored as naive UTC
            doc[k] = v.replace(tzinfo=timezone.utc)
    return doc
