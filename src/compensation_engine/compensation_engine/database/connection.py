from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = 10
    charset: str = "utf8mb4"

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
            connection_timeout=int(db_config.get("connection_timeout", 10)),
            charset=str(db_config.get("charset", "utf8mb4")),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        """Arguments for `mysql.connector.connect`; the bootstrap connects before the database exists."""
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "connection_timeout": self.connection_timeout,
            "charset": self.charset,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Connection factory, one per distinct DBConfig.

    Every repository call opens and closes its own connection, so a single
    factory is shared safely by batch worker threads.
    """

    _instances: ClassVar[dict[DBConfig, "DatabaseConnection"]] = {}
    _instances_guard: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._instances_guard:
            instance: Optional[DatabaseConnection] = cls._instances.get(config)
            if instance is None:
                instance = cls._instances[config] = cls(config)
            return instance

    def connect(self):
        try:
            return mysql.connector.connect(**self._config.connect_kwargs())
        except mysql.connector.Error as e:
            logger.error("Could not connect to MySQL at %s: %s", self._config.describe(), e)
            raise
