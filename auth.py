"""
Account registration and login.

Accounts are the only persistent records of the shop. They live in the
`user` collection, whose unique indexes on username and email are what
reject duplicates; nothing here checks for an existing account before
inserting, so two simultaneous registrations cannot both win.
"""
import os
import logging
import threading
from typing import List, Optional

import bcrypt
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import create_document, get_documents, next_sequence
from errors import Conflict, InternalError, Unauthorized, ValidationError
from schemas import UserListing, UserPublic

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72
MIN_PASSWORD_LENGTH = 6

INVALID_CREDENTIALS = "Invalid username or password"


def rounds_from_env(value: Optional[str]) -> int:
    if value is None:
        return DEFAULT_BCRYPT_ROUNDS
    try:
        rounds = int(value)
    except ValueError:
        rounds = 0
    if not 4 <= rounds <= 31:
        logger.error("BCRYPT_ROUNDS=%r is not an integer between 4 and 31, using %s",
                     value, DEFAULT_BCRYPT_ROUNDS)
        return DEFAULT_BCRYPT_ROUNDS
    return rounds


BCRYPT_ROUNDS = rounds_from_env(os.getenv("BCRYPT_ROUNDS"))


class UserStore:
    collection = "user"

    def __init__(self, db: Database):
        self.db = db
        self._indexed = False
        self._index_lock = threading.Lock()

    def _ensure_indexes(self):
        with self._index_lock:
            if self._indexed:
                return
            self.db[self.collection].create_index("username", unique=True)
            self.db[self.collection].create_index("email", unique=True)
            self._indexed = True

    def insert(self, username: str, email: str, password_hash: str) -> dict:
        """Insert a new account. Raises DuplicateKeyError on a taken username or email."""
        self._ensure_indexes()
        user = {
            "id": next_sequence(self.db, self.collection),
            "username": username,
            "email": email,
            "password": password_hash,
        }
        create_document(self.db, self.collection, user)
        return user

    def find_by_username(self, username: str) -> Optional[dict]:
        return self.db[self.collection].find_one({"username": username})

    def all(self) -> List[dict]:
        projection = {"_id": 0, "id": 1, "username": 1, "email": 1, "created_at": 1}
        return get_documents(self.db, self.collection, projection=projection)


class AuthService:
    def __init__(self, users: UserStore, rounds: int = BCRYPT_ROUNDS):
        self.users = users
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode()[:BCRYPT_MAX_BYTES], salt).decode()

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode()[:BCRYPT_MAX_BYTES], password_hash.encode())

    def register(self, username: Optional[str], email: Optional[str],
                 password: Optional[str]) -> UserPublic:
        if not username or not email or not password:
            raise ValidationError("Please provide username, email, and password")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        try:
            password_hash = self.hash_password(password)
        except ValueError:
            logger.exception("Password hashing failed for %r", username)
            raise InternalError("Server error during registration")

        try:
            user = self.users.insert(username, email, password_hash)
        except DuplicateKeyError:
            logger.warning("Registration rejected, username or email taken: %r", username)
            raise Conflict("Username or email already exists")
        except PyMongoError:
            logger.exception("Could not store user %r", username)
            raise InternalError("Error creating user")

        logger.info("Registered user %s (%r)", user["id"], username)
        return UserPublic(id=user["id"], username=username, email=email)

    def login(self, username: Optional[str], password: Optional[str]) -> UserPublic:
        if not username or not password:
            raise ValidationError("Please provide username and password")

        try:
            user = self.users.find_by_username(username)
            valid = user is not None and self.verify_password(password, user["password"])
        except (PyMongoError, ValueError):
            logger.exception("Login lookup failed for %r", username)
            raise InternalError("Server error during login")

        if not valid:
            logger.warning("Failed login for %r", username)
            raise Unauthorized(INVALID_CREDENTIALS)
        return UserPublic(id=user["id"], username=user["username"], email=user["email"])

    def list_users(self) -> List[UserListing]:
        try:
            docs = self.users.all()
        except PyMongoError:
            logger.exception("Could not list users")
            raise InternalError("Error fetching users")
        return [UserListing(**doc) for doc in docs]
