"""Pytest configuration and shared fixtures"""

import sqlite3
import uuid
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection

from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession

# Deterministic GUIDs so failures are reproducible
GUIDS = [str(uuid.UUID(int=i + 1)) for i in range(12)]


def build_shop_database(db_path: Path) -> None:
    """Create a small shop database exercising every extraction feature"""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            username TEXT NOT NULL,
            email TEXT,
            is_active TINYINT NOT NULL,
            archived SMALLINT,
            status_code SMALLINT,
            external_id CHAR(36),
            session_token CHAR(36),
            api_key VARCHAR(36)
        )
    """)
    cursor.executemany(
        """
        INSERT INTO users (username, email, is_active, archived, status_code, external_id, session_token, api_key)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                f"user{i}",
                f"user{i}@example.com",
                i % 2,
                1 if i % 3 == 0 else 0,
                i % 3,
                GUIDS[i],
                GUIDS[i],
                "   " if i == 5 else GUIDS[i],
            )
            for i in range(12)
        ],
    )

    cursor.execute("""
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            total REAL,
            note TEXT
        )
    """)
    cursor.execute("CREATE INDEX idx_orders_user ON orders(user_id)")

    cursor.execute("""
        CREATE TABLE products (
            id INTEGER PRIMARY KEY,
            sku TEXT UNIQUE,
            name TEXT NOT NULL
        )
    """)
    cursor.execute("CREATE UNIQUE INDEX ux_products_name ON products(name)")

    cursor.execute("""
        CREATE TABLE order_items (
            order_id INTEGER NOT NULL,
            product_id INTEGER NOT NULL,
            quantity INTEGER,
            PRIMARY KEY (order_id, product_id),
            FOREIGN KEY (order_id) REFERENCES orders(id),
            FOREIGN KEY (product_id) REFERENCES products(id)
        )
    """)

    cursor.execute("""
        CREATE TABLE shipments (
            id INTEGER PRIMARY KEY,
            item_product INTEGER,
            item_order INTEGER,
            FOREIGN KEY (item_product, item_order) REFERENCES order_items(product_id, order_id)
        )
    """)
    cursor.execute("CREATE INDEX idx_shipments_item ON shipments(item_order, item_product)")

    cursor.execute("CREATE VIEW active_users AS SELECT id, username FROM users WHERE is_active = 1")

    conn.commit()
    conn.close()


@pytest.fixture
def shop_db(tmp_path: Path) -> str:
    """Return a connection URL for a populated SQLite shop database"""
    db_path = tmp_path / "shop.db"
    build_shop_database(db_path)
    return f"sqlite:///{db_path}"


@pytest.fixture
def no_fk_db(tmp_path: Path) -> str:
    """Return a connection URL for a database that declares no foreign keys"""
    db_path = tmp_path / "legacy.db"
    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);
        CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER, total REAL);
    """)
    conn.commit()
    conn.close()
    return f"sqlite:///{db_path}"


@pytest.fixture
def shop_connection(shop_db: str) -> Iterator[Connection]:
    """Yield an open SQLAlchemy connection to the shop database"""
    engine = create_engine(shop_db)
    try:
        with engine.connect() as connection:
            yield connection
    finally:
        engine.dispose()


@pytest.fixture
def shop_session(shop_connection: Connection) -> CatalogSession:
    """Return a catalog session on the shop database"""
    return CatalogSession(shop_connection, BackendKind.SQLITE)
