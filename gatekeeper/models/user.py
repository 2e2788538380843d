"""
User account model

Players log in with a username and password; their progression is keyed
by the user id so it outlives individual sessions.
"""
from datetime import datetime, timezone
import secrets
from typing import Optional

from sqlalchemy import func
from werkzeug.security import generate_password_hash, check_password_hash


MIN_PASSWORD_LENGTH = 8


def create_user_model(db):
    """Factory function to create User model with db instance"""

    class User(db.Model):
        """Player account"""
        __tablename__ = 'users'

        id = db.Column(db.String(64), primary_key=True)
        username = db.Column(db.String(100), unique=True, nullable=False, index=True)
        password_hash = db.Column(db.String(255), nullable=False)
        created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

        @classmethod
        def create(cls, username: str, password: str) -> 'User':
            """
            Build a new user with a hashed password (not yet committed)

            Raises:
                ValueError: If the username is blank or the password is too short
            """
            if not username or not username.strip():
                raise ValueError('Username is required')
            if not password or len(password) < MIN_PASSWORD_LENGTH:
                raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

            return cls(
                id=f'user_{secrets.token_hex(8)}',
                username=username.strip(),
                password_hash=generate_password_hash(password),
            )

        @classmethod
        def find_by_username(cls, username: str) -> Optional['User']:
            """Case-insensitive lookup"""
            if not username:
                return None
            return cls.query.filter(func.lower(cls.username) == username.strip().lower()).first()

        def check_password(self, password: str) -> bool:
            if not password:
                return False
            return check_password_hash(self.password_hash, password)

        def to_public_dict(self):
            return {'id': self.id, 'username': self.username}

        def __repr__(self):
            return f'<User {self.id} username={self.username}>'

    return User
