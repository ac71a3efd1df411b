"""
User Repository (v1.0.0)
Account documents in MongoDB.
"""
import logging
from typing import Optional, Dict, Any

from pymongo.errors import PyMongoError, DuplicateKeyError

from shine_wardrobe.core.models import User, utc_now
from shine_wardrobe.db.mongo import Database, PersistenceError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "city", "gender", "preferences"}


class DuplicateEmailError(PersistenceError):
    """Email already registered."""
    def __init__(self, email: str):
        super().__init__(f"User with email {email} already exists", status_code=409)


class UserRepository:
    """CRUD for users."""

    def __init__(self, db: Database):
        self.collection = db.collection("users")

    def create(self, user: User) -> User:
        try:
            self.collection.insert_one(user.to_dict())
            logger.info(f"User created: {user.id}")
            return user
        except DuplicateKeyError:
            raise DuplicateEmailError(user.email)
        except PyMongoError as e:
            logger.error(f"Failed to create user: {e}")
            raise PersistenceError("Failed to create user") from e

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            doc = self.collection.find_one({"email": email}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Failed to find user by email: {e}")
            raise PersistenceError("Failed to load user") from e
        return User.from_dict(doc) if doc else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            doc = self.collection.find_one({"id": user_id}, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"Failed to find user {user_id}: {e}")
            raise PersistenceError("Failed to load user") from e
        return User.from_dict(doc) if doc else None

    def update(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        """Apply profile updates; unknown fields are ignored."""
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        changes["updated_at"] = utc_now()

        try:
            self.collection.update_one({"id": user_id}, {"$set": changes})
        except PyMongoError as e:
            logger.error(f"Failed to update user {user_id}: {e}")
            raise PersistenceError("Failed to update user") from e

        return self.find_by_id(user_id)

    def delete(self, user_id: str) -> bool:
        try:
            result = self.collection.delete_one({"id": user_id})
        except PyMongoError as e:
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise PersistenceError("Failed to delete user") from e
        return result.deleted_count > 0
