"""
SQLite schema migrations.

Usage (from backend/):
    python -m salon_booking.migrate
"""

import glob
import os
import sqlite3

from .config import settings

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")


def get_db_path() -> str:
    url = settings.resolved_database_url
    if not url.startswith("sqlite:///"):
        raise RuntimeError(f"Only SQLite URLs are supported, got {url}")
    return url.replace("sqlite:///", "", 1)


def apply_migrations(db_path: str | None = None, migrations_dir: str = MIGRATIONS_DIR) -> int:
    """Apply pending .sql migrations in version order. Returns the final schema version."""
    db_path = db_path or get_db_path()
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    print(f"Using DB: {db_path}")

    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()

        # Migration version table
        cur.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                applied_at TEXT DEFAULT CURRENT_TIMESTAMP
            );
        """)

        cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations;")
        current_version = cur.fetchone()[0]
        print(f"Current schema version: {current_version}")

        for path in sorted(glob.glob(os.path.join(migrations_dir, "*.sql"))):
            filename = os.path.basename(path)
            version = int(filename.split("_")[0])

            if version <= current_version:
                continue

            print(f"Applying migration {filename}...")
            with open(path, "r", encoding="utf-8") as f:
                sql = f.read()

            cur.executescript(sql)
            cur.execute("INSERT INTO schema_migrations(version) VALUES (?)", (version,))
            conn.commit()
            current_version = version
            print(f"Applied {filename}")
    finally:
        conn.close()

    print("All migrations applied.")
    return current_version


if __name__ == "__main__":
    apply_migrations()
