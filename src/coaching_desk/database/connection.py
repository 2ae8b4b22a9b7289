from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database


@dataclass
class MongoConfig:
    uri: str
    database: str
    server_selection_timeout_ms: int = 5000
    connect_timeout_ms: int = 10000
    socket_timeout_ms: int = 45000
    max_pool_size: int = 10
    min_pool_size: int = 1
    use_transactions: bool = False


class DatabaseConnection:
    """Singleton-like holder of the process-wide pooled MongoClient.

    Note: The client connects lazily, so building the container never blocks on the network.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[MongoClient] = None

    @classmethod
    def get_instance(cls, config: MongoConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            self._client = MongoClient(
                self._config.uri,
                serverSelectionTimeoutMS=self._config.server_selection_timeout_ms,
                connectTimeoutMS=self._config.connect_timeout_ms,
                socketTimeoutMS=self._config.socket_timeout_ms,
                maxPoolSize=self._config.max_pool_size,
                minPoolSize=self._config.min_pool_size,
                retryWrites=True,
                retryReads=True,
                tz_aware=True,
            )
        return self._client

    @property
    def db(self) -> Database:
        return self.client[self._config.database]

    @contextmanager
    def transaction(self) -> Iterator[Optional[ClientSession]]:
        """Yield a session bound to a multi-document transaction, or None when disabled.

        Leaving the block with an exception aborts the transaction.
        """
        if not self._config.use_transactions:
            yield None
            return

        with self.client.start_session() as session:
            with session.start_transaction():
                yield session

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
