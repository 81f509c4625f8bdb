"""MySQL-backed reading store."""

import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import pymysql
from pymysql.cursors import DictCursor

from .models import DecodedReading, StoredReading
from .storage import ReadingStore

logger = logging.getLogger(__name__)

COLUMNS = (
    "id, timestamp, created_at, temperature, ph, tds_level, "
    "moisture, ec, humidity, light"
)


@dataclass
class DBConfig:
    """Database connection configuration."""
    host: str
    user: str
    password: str
    database: str

    @classmethod
    def from_env(cls) -> "DBConfig":
        """Create config from environment variables."""
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_DATABASE", "hydromon"),
        )


def _to_db_time(value: datetime) -> datetime:
    # DATETIME columns hold naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


def _row_to_reading(row: dict) -> StoredReading:
    return StoredReading(
        id=row["id"],
        timestamp=_from_db_time(row["timestamp"]),
        created_at=_from_db_time(row["created_at"]),
        reading=DecodedReading(
            temperature=float(row["temperature"]),
            ph=float(row["ph"]),
            tds_level=float(row["tds_level"]),
            moisture=row.get("moisture"),
            ec=row.get("ec"),
            humidity=row.get("humidity"),
            light=row.get("light"),
        ),
    )


class MySQLReadingStore(ReadingStore):
    """Stores readings in the `sensor_readings` MySQL table.

    Write failures are logged and reported as a None result; query
    failures are logged and return empty results.
    """

    def __init__(self, db_config: DBConfig):
        """Initialize storage with database configuration.

        Args:
            db_config: Database connection configuration.
        """
        self.db_config = db_config
        self._connection: Optional[pymysql.Connection] = None
        self._lock = threading.Lock()

    def _get_connection(self) -> pymysql.Connection:
        """Get or create database connection."""
        if self._connection is None or not self._connection.open:
            self._connection = pymysql.connect(
                host=self.db_config.host,
                user=self.db_config.user,
                password=self.db_config.password,
                database=self.db_config.database,
                cursorclass=DictCursor,
            )
        return self._connection

    def append(
        self, reading: DecodedReading, timestamp: Optional[datetime] = None
    ) -> Optional[StoredReading]:
        stored = StoredReading.create(reading, timestamp)
        insert_sql = f"""
            INSERT INTO sensor_readings ({COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        values = (
            stored.id,
            _to_db_time(stored.timestamp),
            _to_db_time(stored.created_at),
            reading.temperature,
            reading.ph,
            reading.tds_level,
            reading.moisture,
            reading.ec,
            reading.humidity,
            reading.light,
        )

        with self._lock:
            conn = None
            try:
                conn = self._get_connection()
                with conn.cursor() as cursor:
                    cursor.execute(insert_sql, values)
                conn.commit()
                return stored
            except Exception as e:
                logger.error(f"Error storing reading: {e}")
                if conn is not None and conn.open:
                    conn.rollback()
                return None

    def _query(self, sql: str, params: tuple) -> List[StoredReading]:
        with self._lock:
            try:
                conn = self._get_connection()
                with conn.cursor() as cursor:
                    cursor.execute(sql, params)
                    rows = cursor.fetchall()
            except Exception as e:
                logger.error(f"Error fetching readings: {e}")
                return []
        return [_row_to_reading(row) for row in rows]

    def get_recent(self, limit: int = 50) -> List[StoredReading]:
        if limit <= 0:
            return []
        query = f"""
            SELECT {COLUMNS}
            FROM sensor_readings
            ORDER BY timestamp DESC
            LIMIT %s
        """
        return self._query(query, (limit,))

    def get_range(self, start_time: datetime, end_time: datetime) -> List[StoredReading]:
        if start_time > end_time:
            return []
        query = f"""
            SELECT {COLUMNS}
            FROM sensor_readings
            WHERE timestamp BETWEEN %s AND %s
            ORDER BY timestamp ASC
        """
        return self._query(query, (_to_db_time(start_time), _to_db_time(end_time)))

    def count(self) -> int:
        with self._lock:
            try:
                conn = self._get_connection()
                with conn.cursor() as cursor:
                    cursor.execute("SELECT COUNT(*) AS total FROM sensor_readings")
                    row = cursor.fetchone()
            except Exception as e:
                logger.error(f"Error counting readings: {e}")
                return 0
        return int(row["total"]) if row else 0

    def close(self):
        """Close the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
