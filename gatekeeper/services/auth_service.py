"""
Authentication service

Verifies player credentials against the users table and seeds the
default account players log in with.
"""
import logging
import random
import time
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError


logger = logging.getLogger(__name__)


class AuthService:
    """
    Username/password authentication.

    Failed attempts sleep for a random delay within `failure_delay` so
    unknown users and wrong passwords take similar time.
    """

    def __init__(self, db, user_model, failure_delay: Tuple[float, float] = (0.05, 0.15)):
        self.db = db
        self.User = user_model
        self.failure_delay = failure_delay

    def authenticate(self, username: str, password: str):
        """
        Returns:
            The User on success, None otherwise
        """
        user = self.User.find_by_username(username)
        if user is None or not user.check_password(password):
            self._failure_delay()
            return None
        return user

    def create_user(self, username: str, password: str):
        """
        Create and commit a new account

        Raises:
            ValueError: If the username is taken or the input is invalid
        """
        if self.User.find_by_username(username):
            raise ValueError('Username already exists')

        user = self.User.create(username, password)
        self.db.session.add(user)
        try:
            self.db.session.commit()
        except IntegrityError:
            self.db.session.rollback()
            raise ValueError('Username already exists')
        return user

    def ensure_default_user(self, username: str, password: str) -> Optional[object]:
        """Seed the default player account if it does not exist yet."""
        if not username or not password:
            return None

        existing = self.User.find_by_username(username)
        if existing:
            return existing

        try:
            user = self.create_user(username, password)
        except ValueError as e:
            logger.warning(f"Could not seed default user {username}: {e}")
            return None

        logger.info(f"Seeded default user: {user.username}")
        return user

    def _failure_delay(self):
        low, high = self.failure_delay
        if high > 0:
            time.sleep(random.uniform(low, high))
