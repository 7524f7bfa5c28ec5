# backend/scripts/create_tables.py
"""
Create the users and missions tables without alembic (local databases only).

    DATABASE_URL=sqlite:///parkops.db python scripts/create_tables.py
"""
from sqlalchemy import inspect

from parkops.db import engine, Base
from parkops import models  # noqa: F401  (registers User and Mission on Base.metadata)


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    print(f"database: {engine.url.render_as_string(hide_password=True)}")
    print("tables:", ", ".join(sorted(inspect(engine).get_table_names())))
