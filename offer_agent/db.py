from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from offer_agent.errors import StoreError
from offer_agent.models import OfferFacts, OfferRecord


class OfferStore(Protocol):
    def insert_if_absent(self, offer: OfferRecord) -> bool:
        """Insert unless (offer_id, bank_name, payment_instrument) exists; True when inserted."""

    def find_offers(self, bank_name: str | None = None, payment_instrument: str | None = None) -> list[OfferRecord]:
        ...

    def count_offers(self) -> int:
        ...

    def log_ingest(self, source: str, status: str, detail: str = "") -> None:
        ...


class Database:
    def __init__(self, path: str = "offers.db", timeout_s: float = 30.0) -> None:
        self.path = Path(path)
        self.timeout_s = timeout_s
        self._init_schema()

    @contextmanager
    def connect(self):
        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout_s)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self.connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS offers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    offer_id TEXT NOT NULL,
                    bank_name TEXT,
                    payment_instrument TEXT,
                    type TEXT,
                    value REAL NOT NULL DEFAULT 0,
                    title TEXT NOT NULL,
                    description TEXT,
                    percent REAL,
                    max_discount_cap INTEGER,
                    min_order_value INTEGER,
                    is_no_cost_emi INTEGER NOT NULL DEFAULT 0,
                    fee_waiver_amount INTEGER,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );

                CREATE UNIQUE INDEX IF NOT EXISTS offers_dedup_key ON offers(
                    offer_id,
                    COALESCE(bank_name, ''),
                    COALESCE(payment_instrument, '')
                );

                CREATE TABLE IF NOT EXISTS ingest_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source TEXT NOT NULL,
                    ingested_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    status TEXT NOT NULL,
                    detail TEXT
                );
                """
            )

    def insert_if_absent(self, offer: OfferRecord) -> bool:
        facts = offer.facts or OfferFacts()
        with self.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO offers(
                    offer_id, bank_name, payment_instrument, type, value, title, description,
                    percent, max_discount_cap, min_order_value, is_no_cost_emi, fee_waiver_amount
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                (
                    offer.offer_id,
                    offer.bank_name,
                    offer.payment_instrument,
                    offer.type,
                    offer.value,
                    offer.title,
                    offer.description,
                    facts.percent,
                    facts.max_discount_cap,
                    facts.min_order_value,
                    int(facts.is_no_cost_emi_offer),
                    facts.fee_waiver_amount,
                ),
            )
        return cursor.rowcount == 1

    def find_offers(self, bank_name: str | None = None, payment_instrument: str | None = None) -> list[OfferRecord]:
        query = "SELECT * FROM offers WHERE 1 = 1"
        params: list[str] = []
        if bank_name is not None:
            query += " AND bank_name = ?"
            params.append(bank_name)
        if payment_instrument is not None:
            query += " AND payment_instrument = ?"
            params.append(payment_instrument)
        query += " ORDER BY id"
        with self.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_offer(row) for row in rows]

    def count_offers(self) -> int:
        with self.connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM offers").fetchone()
        return int(row["count"]) if row else 0

    def log_ingest(self, source: str, status: str, detail: str = "") -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO ingest_log(source, status, detail) VALUES (?, ?, ?)",
                (source, status, detail),
            )

    def fetch_ingest_log(self, limit: int = 50) -> list[sqlite3.Row]:
        with self.connect() as conn:
            return conn.execute(
                "SELECT source, ingested_at, status, detail FROM ingest_log ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()


def _row_to_offer(row: sqlite3.Row) -> OfferRecord:
    return OfferRecord(
        offer_id=row["offer_id"],
        title=row["title"],
        bank_name=row["bank_name"],
        payment_instrument=row["payment_instrument"],
        type=row["type"],
        value=float(row["value"]),
        description=row["description"],
        facts=OfferFacts(
            percent=row["percent"],
            max_discount_cap=row["max_discount_cap"],
            min_order_value=row["min_order_value"],
            is_no_cost_emi_offer=bool(row["is_no_cost_emi"]),
            fee_waiver_amount=row["fee_waiver_amount"],
        ),
    )


class MemoryOfferStore:
    """In-process store with the same insert-if-absent semantics as Database."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._offers: dict[tuple[str, str | None, str | None], OfferRecord] = {}
        self.ingest_log: list[tuple[str, str, str]] = []

    def insert_if_absent(self, offer: OfferRecord) -> bool:
        with self._lock:
            if offer.key in self._offers:
                return False
            self._offers[offer.key] = offer
            return True

    def find_offers(self, bank_name: str | None = None, payment_instrument: str | None = None) -> list[OfferRecord]:
        with self._lock:
            offers = list(self._offers.values())
        return [
            o
            for o in offers
            if (bank_name is None or o.bank_name == bank_name)
            and (payment_instrument is None or o.payment_instrument == payment_instrument)
        ]

    def count_offers(self) -> int:
        with self._lock:
            return len(self._offers)

    def log_ingest(self, source: str, status: str, detail: str = "") -> None:
        self.ingest_log.append((source, status, detail))
