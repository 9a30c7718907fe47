"""User accounts for the mock backend"""

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..models.user import User


def hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 10_000).hex()


class UserDatabase:
    """In-memory user store with two seeded accounts"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.users: dict[str, User] = {}
        self.revoked_tokens: set[str] = set()
        self.create_user("admin@example.com", "admin123", name="Store Admin", role="ADMIN")
        self.create_user("shopper@example.com", "secret123", name="Sam Shopper")

    def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = "CUSTOMER",
    ) -> User:
        salt = secrets.token_hex(8)
        user = User(
            id=str(uuid.uuid4()),
            email=email.strip().lower(),
            name=name,
            role=role,
            created_at=datetime.now(timezone.utc),
            password_hash=hash_password(password, salt),
            password_salt=salt,
        )
        self.users[user.id] = user
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        email = (email or "").strip().lower()
        return next((u for u in self.users.values() if u.email == email), None)

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email)
        if not user:
            return None
        if not hmac.compare_digest(user.password_hash, hash_password(password, user.password_salt)):
            return None
        return user


# Singleton instance
user_db = UserDatabase()
