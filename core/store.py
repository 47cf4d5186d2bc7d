"""
Store access for the workloads.

The workloads only see the StoreAccess interface; MongoStore is the
pymongo-backed implementation used by the command line entry point.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from pymongo import MongoClient
from pymongo.errors import ConfigurationError, PyMongoError


class TransientStoreError(Exception):
    """An insert or read failed; always worth retrying."""
    pass


class FatalConfigurationError(Exception):
    """Store access could not be constructed at all."""
    pass


@dataclass(frozen=True)
class Record:
    """One record produced by the write workload."""
    id: int
    name: str

    @classmethod
    def for_index(cls, index: int, prefix: str = "Sid") -> 'Record':
        """Build the deterministic record for sequence index `index`."""
        return cls(id=index, name=f"{prefix}{index}")

    def to_document(self) -> dict:
        # Fresh dict per call: insert_one() adds an _id to the dict it is given
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_document(cls, document: dict) -> 'Record':
        return cls(id=document.get('id'), name=document.get('name'))


class StoreAccess(ABC):
    """Operations the workloads need from the replicated store."""

    @abstractmethod
    def insert_one(self, record: Record):
        """Insert a single record. Raises TransientStoreError on failure."""

    @abstractmethod
    def find_all(self) -> List[Record]:
        """Read the whole collection. Raises TransientStoreError on failure."""

    def close(self):
        """Release the underlying connection."""


class MongoStore(StoreAccess):
    """StoreAccess backed by one MongoClient per instance."""

    def __init__(self, connection_string: str, database: str, collection: str,
                 server_selection_timeout_ms: int = 5000):
        """
        Args:
            connection_string: mongodb:// URI of the replica set
            database: Database name
            collection: Collection name
            server_selection_timeout_ms: How long pymongo waits for a usable
                primary before an operation fails

        Raises:
            FatalConfigurationError: If the connection string is unusable
        """
        if not connection_string or not connection_string.strip():
            raise FatalConfigurationError("Connection string is empty")

        try:
            self.client = MongoClient(
                connection_string,
                serverSelectionTimeoutMS=server_selection_timeout_ms,
            )
        except ConfigurationError as e:
            raise FatalConfigurationError(f"Invalid connection string: {e}") from e

        self.database_name = database
        self.collection_name = collection
        self.collection = self.client[database][collection]

    def insert_one(self, record: Record):
        try:
            self.collection.insert_one(record.to_document())
        except PyMongoError as e:
            raise TransientStoreError(f"Insert of record {record.id} failed: {e}") from e

    def find_all(self) -> List[Record]:
        try:
            documents = list(self.collection.find({}, {'_id': False}))
        except PyMongoError as e:
            raise TransientStoreError(f"Read of {self.collection_name} failed: {e}") from e
        return [Record.from_document(doc) for doc in documents]

    def close(self):
        try:
            self.client.close()
        except PyMongoError as e:
            logging.warning(f"Error closing store connection: {e}")
