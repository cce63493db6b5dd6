from __future__ import annotations

import json
import shutil
import sqlite3
from dataclasses import astuple
from datetime import datetime
from pathlib import Path

from invpro.domain.errors import PersistenceUnavailableError
from invpro.domain.models import (
    BusinessInfo,
    Customer,
    Product,
    PurchaseOrder,
    SaleItem,
    SaleOrder,
    Supplier,
    field_names,
    record_from_dict,
)
from invpro.repositories.contracts import COLLECTIONS, Changeset, StoredState

_COLUMNS: dict[str, tuple[str, ...]] = {
    "products": field_names(Product),
    "customers": field_names(Customer),
    "suppliers": field_names(Supplier),
    "purchases": field_names(PurchaseOrder),
    "sales": tuple(c for c in field_names(SaleOrder) if c != "items"),
}

_BUSINESS_COLUMNS = field_names(BusinessInfo)


class SqliteRepository:
    """Local store: one table per collection, keyed by the generated id."""

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_product_supplier),
                (3, self._migration_v3_remote_outbox),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY,
            upc TEXT NOT NULL DEFAULT '',
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            picture TEXT NOT NULL DEFAULT '',
            purchase_price REAL NOT NULL CHECK(purchase_price >= 0),
            sales_price REAL NOT NULL CHECK(sales_price >= 0),
            in_stock INTEGER NOT NULL DEFAULT 0 CHECK(in_stock >= 0),
            value_on_hand REAL NOT NULL DEFAULT 0
        )
        """
        )

        for table in ("customers", "suppliers"):
            cur.execute(
                f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL DEFAULT '',
                phone TEXT NOT NULL DEFAULT '',
                address TEXT NOT NULL DEFAULT '',
                city TEXT NOT NULL DEFAULT '',
                state TEXT NOT NULL DEFAULT '',
                zip_code TEXT NOT NULL DEFAULT ''
            )
            """
            )

        # Product and party references are plain ids: deleting a product
        # must not touch historical orders.
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS purchases (
            id TEXT PRIMARY KEY,
            supplier_id TEXT NOT NULL,
            product_id TEXT NOT NULL,
            quantity INTEGER NOT NULL CHECK(quantity > 0),
            unit_price REAL NOT NULL CHECK(unit_price >= 0),
            total_amount REAL NOT NULL,
            date TEXT NOT NULL,
            status TEXT NOT NULL CHECK(status IN ('pending','received','cancelled'))
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS sales (
            id TEXT PRIMARY KEY,
            customer_id TEXT NOT NULL,
            total_amount REAL NOT NULL,
            date TEXT NOT NULL,
            status TEXT NOT NULL CHECK(status IN ('pending','completed','cancelled'))
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS sale_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            sale_id TEXT NOT NULL,
            product_id TEXT NOT NULL,
            quantity INTEGER NOT NULL CHECK(quantity > 0),
            unit_price REAL NOT NULL CHECK(unit_price >= 0),
            FOREIGN KEY(sale_id) REFERENCES sales(id) ON DELETE CASCADE
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS business_info (
            id INTEGER PRIMARY KEY CHECK(id = 1),
            name TEXT NOT NULL,
            address TEXT NOT NULL DEFAULT '',
            city TEXT NOT NULL DEFAULT '',
            state TEXT NOT NULL DEFAULT '',
            zip_code TEXT NOT NULL DEFAULT '',
            phone TEXT NOT NULL DEFAULT '',
            email TEXT NOT NULL DEFAULT '',
            website TEXT NOT NULL DEFAULT '',
            tax_id TEXT NOT NULL DEFAULT '',
            logo TEXT NOT NULL DEFAULT ''
        )
        """
        )

    def _migration_v2_product_supplier(self, cur: sqlite3.Cursor) -> None:
        self._add_column_if_missing(cur, "products", "supplier_id", "TEXT")

    def _add_column_if_missing(self, cur: sqlite3.Cursor, table: str, column: str, definition: str) -> None:
        cur.execute(f"PRAGMA table_info({table})")
        cols = {str(r[1]) for r in cur.fetchall()}
        if column in cols:
            return
        cur.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

    def _migration_v3_remote_outbox(self, cur: sqlite3.Cursor) -> None:
        # Changesets the remote has not acknowledged yet, replayed in id order.
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS remote_outbox (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            payload TEXT NOT NULL,
            queued_at TEXT NOT NULL
        )
        """
        )

    # ---------- Reads ----------
    def load_state(self) -> StoredState:
        conn = self._conn()
        cur = conn.cursor()
        try:
            state = StoredState()
            for name, cls in COLLECTIONS.items():
                cols = _COLUMNS[name]
                cur.execute(f"SELECT {', '.join(cols)} FROM {name} ORDER BY rowid")
                rows = [dict(zip(cols, r)) for r in cur.fetchall()]
                if name == "sales":
                    items = self._sale_items_by_sale(cur)
                    for row in rows:
                        row["items"] = items.get(row["id"], [])
                state.collection(name).extend(record_from_dict(cls, row) for row in rows)

            cur.execute(f"SELECT {', '.join(_BUSINESS_COLUMNS)} FROM business_info WHERE id = 1")
            r = cur.fetchone()
            if r:
                state.business_info = BusinessInfo(*r)
            return state
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Local store read failed: {exc}") from exc
        finally:
            conn.close()

    def _sale_items_by_sale(self, cur: sqlite3.Cursor) -> dict[str, list[SaleItem]]:
        cur.execute(
            """
            SELECT sale_id, product_id, quantity, unit_price
            FROM sale_items
            ORDER BY id
        """
        )
        out: dict[str, list[SaleItem]] = {}
        for r in cur.fetchall():
            out.setdefault(str(r[0]), []).append(
                SaleItem(product_id=str(r[1]), quantity=int(r[2]), unit_price=float(r[3]))
            )
        return out

    # ---------- Writes ----------
    def commit(self, changes: Changeset, queue_remote: bool = False) -> None:
        """Apply the changeset in one transaction.

        With ``queue_remote`` the changeset is also stored in ``remote_outbox``
        in that same transaction, so it can be replayed to the remote later.
        """
        conn = self._conn()
        cur = conn.cursor()
        try:
            for name, records in changes.upserts.items():
                for record in records:
                    self._upsert(cur, name, record)

            for name, ids in changes.deletes.items():
                for record_id in ids:
                    cur.execute(f"DELETE FROM {name} WHERE id = ?", (record_id,))

            if changes.business_info is not None:
                cols = ("id",) + _BUSINESS_COLUMNS
                updates = ", ".join(f"{c}=excluded.{c}" for c in _BUSINESS_COLUMNS)
                cur.execute(
                    f"""
                    INSERT INTO business_info ({', '.join(cols)})
                    VALUES ({', '.join('?' for _ in cols)})
                    ON CONFLICT(id) DO UPDATE SET {updates}
                    """,
                    (1,) + astuple(changes.business_info),
                )

            if queue_remote:
                cur.execute(
                    "INSERT INTO remote_outbox (payload, queued_at) VALUES (?, datetime('now'))",
                    (json.dumps(changes.to_dict()),),
                )

            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceUnavailableError(f"Local store write failed: {exc}") from exc
        finally:
            conn.close()

    def _upsert(self, cur: sqlite3.Cursor, table: str, record: object) -> None:
        cols = _COLUMNS[table]
        updates = ", ".join(f"{c}=excluded.{c}" for c in cols if c != "id")
        cur.execute(
            f"""
            INSERT INTO {table} ({', '.join(cols)})
            VALUES ({', '.join('?' for _ in cols)})
            ON CONFLICT(id) DO UPDATE SET {updates}
            """,
            tuple(getattr(record, c) for c in cols),
        )
        if table == "sales":
            cur.execute("DELETE FROM sale_items WHERE sale_id = ?", (record.id,))
            for it in record.items:
                cur.execute(
                    """
                    INSERT INTO sale_items (sale_id, product_id, quantity, unit_price)
                    VALUES (?, ?, ?, ?)
                """,
                    (record.id, it.product_id, int(it.quantity), float(it.unit_price)),
                )

    # ---------- Remote outbox ----------
    def pending_remote(self) -> list[tuple[int, Changeset]]:
        conn = self._conn()
        try:
            rows = conn.execute("SELECT id, payload FROM remote_outbox ORDER BY id").fetchall()
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Local outbox read failed: {exc}") from exc
        finally:
            conn.close()
        return [(int(r[0]), Changeset.from_dict(json.loads(r[1]))) for r in rows]

    def drop_pending_remote(self, outbox_id: int) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM remote_outbox WHERE id = ?", (outbox_id,))
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceUnavailableError(f"Local outbox write failed: {exc}") from exc
        finally:
            conn.close()
