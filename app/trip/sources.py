"""
Trip sources map an opaque resource id to a binary stream holding the
trip's JSON document.
"""
import io
import json
import logging
from pathlib import Path
from typing import BinaryIO, Protocol

from pymongo import MongoClient

from tripjournal.errors import TripSourceError

logger = logging.getLogger(__name__)


class TripSource(Protocol):
    def open(self, resource_id: str) -> BinaryIO:
        ...


class DirectoryTripSource:
    """Reads ``<resource_id>.json`` files from one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def open(self, resource_id: str) -> BinaryIO:
        path = self.directory / f"{resource_id}.json"
        logger.debug("Opening trip resource %s at %s", resource_id, path)
        return path.open("rb")


class MongoTripSource:
    """Reads trip documents from a MongoDB collection, keyed by ``_id``.

    Each document holds the trip body at top level (``journey`` list); the
    ``_id`` field is dropped before the document is handed to the loader.
    """

    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_uri(cls, uri: str, db_name: str, collection_name: str) -> "MongoTripSource":
        # Fail fast if MongoDB is unreachable
        client = MongoClient(uri, serverSelectionTimeoutMS=2000)
        logger.info("MongoDB trip source — db=%s, collection=%s", db_name, collection_name)
        return cls(client[db_name][collection_name])

    def open(self, resource_id: str) -> BinaryIO:
        logger.info("Querying MongoDB for trip=%s", resource_id)
        doc = self.collection.find_one({"_id": resource_id})
        if not doc:
            raise TripSourceError(resource_id)
        body = {k: v for k, v in doc.items() if k != "_id"}
        return io.BytesIO(json.dumps(body, default=str).encode("utf-8"))
