# backend/scripts/create_user.py
"""
Create a worker account.

    python scripts/create_user.py <username> <password>
"""
import sys

from sqlalchemy import select

from parkops.auth import hash_password
from parkops.db import SessionLocal
from parkops.models.user import User


def create_user(username: str, password: str) -> int:
    username = username.strip()
    with SessionLocal() as s:
        existing = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if existing:
            print(f"✗ User already exists: {username}")
            return existing.id

        user = User(username=username, password_hash=hash_password(password), push_tokens=[])
        s.add(user)
        s.commit()
        print("✓ User created successfully")
        print(f"  Username: {username}")
        print(f"  ID: {user.id}")
        return user.id


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python scripts/create_user.py <username> <password>")
        print("Example: python scripts/create_user.py worker1 password123")
        sys.exit(1)
    create_user(sys.argv[1], sys.argv[2])
