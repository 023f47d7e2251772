"""User accounts: registration, lookup and bcrypt password checks."""
import logging
from typing import Optional

from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import USERS_COLLECTION, create_document, utcnow_iso
from errors import DuplicateUserError
from schemas import User
from validation import MAX_PASSWORD_BYTES

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class UserStore:
    """Credential records. Passwords are only ever stored as bcrypt hashes."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[USERS_COLLECTION]

    def create(self, username: str, email: str, password: str) -> dict:
        username = username.strip()
        email = email.strip().lower()
        existing = self.collection.find_one({"$or": [{"username": username}, {"email": email}]})
        if existing:
            raise DuplicateUserError("User already exists")

        user = User(
            username=username,
            email=email,
            password=get_password_hash(password),
            created_at=utcnow_iso(),
        )
        try:
            user_id = create_document(self.db, USERS_COLLECTION, user)
        except DuplicateKeyError:
            raise DuplicateUserError("User already exists")
        logger.info("Registered user %s", username)
        return {"id": str(user_id), "username": user.username, "email": user.email, "created_at": user.created_at}

    def find_by_username(self, username: str) -> Optional[dict]:
        return self.collection.find_one({"username": username.strip()})

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.strip().lower()})

    def verify_password(self, user: dict, password: str) -> bool:
        # bcrypt would compare only the first 72 bytes
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return False
        try:
            return pwd_context.verify(password, user.get("password", ""))
        except ValueError:
            logger.warning("Stored password for %s is not a recognised hash", user.get("username"))
            return False
