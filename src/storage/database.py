from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional

from src.models.market import PriceSample
from src.models.trade import TradeRequest, TradeResult, TradingSession

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

HISTORY_LIMIT = 50

_SESSION_COLUMNS = """
    ts.id, ts.entry_price, ts.stop_loss, ts.take_profit, ts.position_size,
    ts.leverage, ts.currency_pair, ts.calculated_profit, ts.calculated_loss,
    ts.risk_reward_ratio, ts.created_at, u.wallet_address
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class TradeDatabase:
    """SQLite store for users, trading sessions and price samples."""

    def __init__(self, db_path: str | Path, clock: Callable[[], datetime] = _utcnow):
        self.path = Path(db_path)
        if str(db_path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        # isolation_level=None: transactions are opened explicitly.
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.Lock()
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._lock:
            self._conn.executescript(SCHEMA_PATH.read_text())

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def ping(self) -> str:
        with self._lock:
            row = self._conn.execute("SELECT datetime('now') AS now").fetchone()
        return str(row["now"])

    def save_trading_session(self, wallet_address: str, request: TradeRequest, result: TradeResult) -> int:
        """Upsert the wallet's user row and store the session in one transaction."""
        wallet = wallet_address.lower()
        now = _iso(self._clock())

        with self._lock:
            self._conn.execute("BEGIN")
            try:
                self._conn.execute(
                    """
                    INSERT INTO users (wallet_address, created_at, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT (wallet_address) DO UPDATE SET updated_at = excluded.updated_at
                    """,
                    (wallet, now, now),
                )
                user_id = self._conn.execute(
                    "SELECT id FROM users WHERE wallet_address = ?", (wallet,)
                ).fetchone()["id"]

                cursor = self._conn.execute(
                    """
                    INSERT INTO trading_sessions
                    (user_id, entry_price, stop_loss, take_profit, position_size, leverage,
                     currency_pair, calculated_profit, calculated_loss, risk_reward_ratio, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        request.entry_price,
                        request.stop_loss,
                        request.take_profit,
                        request.position_size,
                        result.leverage,
                        result.currency_pair,
                        result.profit,
                        result.loss,
                        result.risk_reward_ratio,
                        now,
                    ),
                )
                self._conn.execute("COMMIT")
            except Exception:
                self._conn.execute("ROLLBACK")
                raise

        return int(cursor.lastrowid)

    def fetch_history(self, wallet_address: str, limit: int = HISTORY_LIMIT) -> List[TradingSession]:
        if limit <= 0:
            return []
        with self._lock:
            rows = self._conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM trading_sessions ts
                JOIN users u ON ts.user_id = u.id
                WHERE u.wallet_address = ?
                ORDER BY ts.created_at DESC, ts.id DESC
                LIMIT ?
                """,
                (wallet_address.lower(), int(limit)),
            ).fetchall()
        return [_row_to_session(r) for r in rows]

    def fetch_recent(self, limit: int = 20) -> List[TradingSession]:
        if limit <= 0:
            return []
        with self._lock:
            rows = self._conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM trading_sessions ts
                JOIN users u ON ts.user_id = u.id
                ORDER BY ts.created_at DESC, ts.id DESC
                LIMIT ?
                """,
                (int(limit),),
            ).fetchall()
        return [_row_to_session(r) for r in rows]

    def record_price(self, currency_pair: str, price: float, source: str, timestamp: Optional[datetime] = None) -> int:
        ts = _iso(timestamp or self._clock())
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO price_feeds (currency_pair, price, source, timestamp) VALUES (?, ?, ?, ?)",
                (currency_pair, float(price), source, ts),
            )
        return int(cursor.lastrowid)

    def fetch_price_history(self, currency_pair: str, hours: float = 24) -> List[PriceSample]:
        since = _iso(self._clock() - timedelta(hours=hours))
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT currency_pair, price, source, timestamp
                FROM price_feeds
                WHERE currency_pair = ? AND timestamp >= ?
                ORDER BY timestamp DESC, id DESC
                """,
                (currency_pair, since),
            ).fetchall()
        return [
            PriceSample(
                currency_pair=r["currency_pair"],
                price=float(r["price"]),
                source=r["source"],
                timestamp=datetime.fromisoformat(r["timestamp"]),
            )
            for r in rows
        ]


def _row_to_session(row: sqlite3.Row) -> TradingSession:
    return TradingSession(
        id=int(row["id"]),
        entry_price=float(row["entry_price"]),
        stop_loss=float(row["stop_loss"]),
        take_profit=float(row["take_profit"]),
        position_size=float(row["position_size"]),
        leverage=float(row["leverage"]),
        currency_pair=row["currency_pair"],
        profit=float(row["calculated_profit"]),
        loss=float(row["calculated_loss"]),
        risk_reward_ratio=float(row["risk_reward_ratio"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        wallet_address=row["wallet_address"],
    )
