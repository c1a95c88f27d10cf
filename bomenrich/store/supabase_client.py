"""
Supabase Postgres store implementation.

Connects to the hosted Postgres behind Supabase with a direct connection
string (psycopg2 + connection pool), NOT through Supabase API keys:
- Direct Postgres connection is the recommended approach for server-side Python
- API keys (anon/service) are for Supabase's REST API, not direct DB connections

To get your connection string:
- Supabase Dashboard → Project Settings → Database
- Use "Session mode" for long-running workers, "Transaction mode" for
  short-lived processes
- Format: postgresql://postgres:[password]@[host]:5432/postgres
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from psycopg2 import sql
from psycopg2.extras import RealDictCursor, execute_values
from psycopg2.pool import SimpleConnectionPool

from ..config import SupabaseConfig
from .base import (
    Assembly,
    EnrichmentStore,
    LineItem,
    check_assembly_fields,
    check_item_fields,
)

logger = logging.getLogger(__name__)

# Line items are inserted in chunks of this size on import
INSERT_CHUNK_SIZE = 500

_LINE_ITEM_INSERT_COLUMNS = (
    "id",
    "assembly_id",
    "line_number",
    "section",
    "value",
    "shorttext",
    "quantity",
    "supplier1_name",
    "supplier1_order_number",
    "supplier2_name",
    "supplier2_order_number",
)


class SupabaseClient(EnrichmentStore):
    """
    EnrichmentStore backed by Supabase Postgres.

    Every public method takes a connection from the pool, runs its
    statements, commits (or rolls back on error) and returns the connection.
    Aggregates are never computed in SQL; callers scan ``list_all``.
    """

    def __init__(self, config: SupabaseConfig, minconn: int = 1, maxconn: int = 5):
        self.config = config
        self.minconn = minconn
        self.maxconn = maxconn
        self._pool = None

    def _get_connection_pool(self) -> SimpleConnectionPool:
        """Get or create connection pool."""
        if self._pool is None:
            self._pool = SimpleConnectionPool(
                self.minconn,
                self.maxconn,
                dsn=self.config.db_url
            )
        return self._pool

    def _fetch_all(self, query, params) -> List[Dict[str, Any]]:
        pool = self._get_connection_pool()
        conn = pool.getconn()
        cursor = conn.cursor(cursor_factory=RealDictCursor)
        try:
            cursor.execute(query, params)
            rows = cursor.fetchall()
            conn.commit()
            return rows
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            pool.putconn(conn)

    def _execute(self, query, params) -> int:
        """Run one write statement in its own transaction; return rowcount."""
        pool = self._get_connection_pool()
        conn = pool.getconn()
        cursor = conn.cursor()
        try:
            cursor.execute(query, params)
            rowcount = cursor.rowcount
            conn.commit()
            return rowcount
        except Exception as e:
            conn.rollback()
            logger.error(f"Database write failed: {e}", exc_info=True)
            raise
        finally:
            cursor.close()
            pool.putconn(conn)

    def get_assembly(self, assembly_id: str) -> Optional[Assembly]:
        rows = self._fetch_all("""
            SELECT * FROM assemblies
            WHERE id = %s
            LIMIT 1
        """, (assembly_id,))
        return Assembly.from_row(rows[0]) if rows else None

    def create_assembly(self, name: str, customer: str, items: List[LineItem]) -> Assembly:
        """
        Insert the assembly and its line items in one transaction.

        Line items go in chunks of INSERT_CHUNK_SIZE. If any chunk fails the
        whole import is rolled back, so no half-imported assembly is left behind.
        """
        assembly_id = str(uuid4())
        total_quantity = sum(item.quantity for item in items)

        pool = self._get_connection_pool()
        conn = pool.getconn()
        cursor = conn.cursor()
        try:
            cursor.execute("""
                INSERT INTO assemblies (
                    id, name, customer, status, line_item_count, total_quantity,
                    z2data_enrichment_status, z2data_enriched_count,
                    z2data_total_enrichable, created_at
                )
                VALUES (%s, %s, %s, 'Draft', %s, %s, 'not_started', 0, 0, NOW())
            """, (assembly_id, name, customer, len(items), total_quantity))

            insert = "INSERT INTO bom_line_items ({}) VALUES %s".format(
                ", ".join(_LINE_ITEM_INSERT_COLUMNS)
            )
            for start in range(0, len(items), INSERT_CHUNK_SIZE):
                chunk = items[start:start + INSERT_CHUNK_SIZE]
                values = []
                for item in chunk:
                    row = item.to_row()
                    row["id"] = str(uuid4())
                    row["assembly_id"] = assembly_id
                    values.append(tuple(row[c] for c in _LINE_ITEM_INSERT_COLUMNS))
                execute_values(cursor, insert, values)
                logger.debug(
                    f"Inserted line item chunk {start // INSERT_CHUNK_SIZE + 1} "
                    f"({len(chunk)} rows) for assembly {assembly_id}"
                )

            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Assembly import failed for '{name}': {e}", exc_info=True)
            raise
        finally:
            cursor.close()
            pool.putconn(conn)

        logger.info(f"Imported assembly '{name}' ({assembly_id}) with {len(items)} line items")
        return self.get_assembly(assembly_id)

    def list_unprocessed(self, assembly_id: str, limit: int) -> List[LineItem]:
        rows = self._fetch_all("""
            SELECT * FROM bom_line_items
            WHERE assembly_id = %s
              AND TRIM(COALESCE(value, '')) <> ''
              AND z2data_enriched_at IS NULL
              AND z2data_error IS NULL
            ORDER BY line_number ASC
            LIMIT %s
        """, (assembly_id, limit))
        return [LineItem.from_row(row) for row in rows]

    def list_all(self, assembly_id: str) -> List[LineItem]:
        rows = self._fetch_all("""
            SELECT * FROM bom_line_items
            WHERE assembly_id = %s
            ORDER BY line_number ASC
        """, (assembly_id,))
        return [LineItem.from_row(row) for row in rows]

    def get_item(self, assembly_id: str, item_id: str) -> Optional[LineItem]:
        rows = self._fetch_all("""
            SELECT * FROM bom_line_items
            WHERE id = %s AND assembly_id = %s
            LIMIT 1
        """, (item_id, assembly_id))
        return LineItem.from_row(rows[0]) if rows else None

    def _update(self, table: str, row_id: str, fields: Dict[str, Any]) -> None:
        if not fields:
            return
        columns = list(fields)
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s").format(
            sql.Identifier(table),
            sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(c)) for c in columns
            ),
        )
        self._execute(query, [fields[c] for c in columns] + [row_id])

    def update_item(self, item_id: str, fields: Dict[str, Any]) -> None:
        check_item_fields(fields)
        self._update("bom_line_items", item_id, fields)

    def update_assembly(self, assembly_id: str, fields: Dict[str, Any]) -> None:
        check_assembly_fields(fields)
        self._update("assemblies", assembly_id, fields)

    def reset_item_errors(self, assembly_id: str) -> int:
        return self._execute("""
            UPDATE bom_line_items
            SET z2data_error = NULL
            WHERE assembly_id = %s
              AND z2data_error IS NOT NULL
              AND z2data_enriched_at IS NULL
        """, (assembly_id,))

    def close(self):
        """Close the connection pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
