"""
Create tables and check the database connection

Usage:
    python create_tables.py

Production schema changes go through migrations/versions (alembic).
"""
import sys

from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.infrastructure.db.session import check_db_connection, init_db


def main() -> int:
    settings = get_settings()
    print("Testing database connection...")
    print(f"Host: {settings.DB_HOST}")
    print(f"User: {settings.DB_USER}")
    print(f"Database: {settings.DB_NAME}")

    try:
        check_db_connection()
        init_db()
    except SQLAlchemyError as e:
        print(f"Database connection failed: {e}")
        return 1

    print("Tables users, transactions, push_subscriptions are ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
