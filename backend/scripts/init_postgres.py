"""
Check the PostgreSQL database for the mobile API.
Run once before migrating: python scripts/init_postgres.py

Requires: PostgreSQL installed and running. Create user and database:

  sudo -u postgres psql
  CREATE USER mobile_api WITH PASSWORD 'mobile_api';
  CREATE DATABASE mobile_api OWNER mobile_api;
  GRANT ALL PRIVILEGES ON DATABASE mobile_api TO mobile_api;
  \q

Then apply the schema from backend/: alembic upgrade head
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from mobile_api.config import settings

def main():
    url = settings.get_database_url()
    if not url.startswith("postgresql"):
        print("Database URL is not PostgreSQL. Skipping.")
        return
    try:
        engine = create_engine(url)
        with engine.connect() as conn:
            version = conn.execute(text("SELECT version()")).scalar()
        print(f"PostgreSQL connection OK: {version}")
    except SQLAlchemyError as e:
        print(f"Cannot connect to PostgreSQL: {e}")
        print("\nCreate database first:")
        print("  psql -U postgres -c \"CREATE USER mobile_api WITH PASSWORD 'mobile_api';\"")
        print("  psql -U postgres -c \"CREATE DATABASE mobile_api OWNER mobile_api;\"")
        print("  psql -U postgres -c \"GRANT ALL PRIVILEGES ON DATABASE mobile_api TO mobile_api;\"")
        sys.exit(1)

if __name__ == "__main__":
    main()
