"""
Staff authentication

Passwords are stored as bcrypt hashes; sessions are stateless HS256 JWTs
valid for one day.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt

from config import TOKEN_TTL_HOURS
from database import DocumentStore
from errors import AuthenticationError, ValidationError, store_faults
from schemas import User

logger = logging.getLogger(__name__)

COLLECTION = "user"
SALT_ROUNDS = 10
ALGORITHM = "HS256"

INVALID_CREDENTIALS = "Invalid username or password"


def get_user_by_username(store: DocumentStore, username: str):
    with store_faults("Error fetching user"):
        return store.find_document(COLLECTION, {"username": username})


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=SALT_ROUNDS)).decode()


def issue_token(user: dict, secret: str) -> str:
    payload = {
        "id": user["_id"],
        "username": user["username"],
        "exp": datetime.now(timezone.utc) + timedelta(hours=TOKEN_TTL_HOURS),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError as e:
        raise AuthenticationError(f"Invalid token: {e}")


def _session(user: dict, secret: str) -> dict:
    return {
        "token": issue_token(user, secret),
        "user": {"id": user["_id"], "username": user["username"], "role": user.get("role")},
    }


def login(store: DocumentStore, username: str, password: str, secret: str) -> dict:
    user = get_user_by_username(store, username)
    if not user:
        raise AuthenticationError(INVALID_CREDENTIALS)
    # checkpw compares in constant time
    if not bcrypt.checkpw(password.encode(), user["password"].encode()):
        raise AuthenticationError(INVALID_CREDENTIALS)
    logger.info("User logged in: %s", username)
    return _session(user, secret)


def register(store: DocumentStore, data: Dict[str, Any], secret: str) -> dict:
    username = data.get("username")
    password = data.get("password")
    if not username or not password:
        raise ValidationError("Username and password are required")
    if get_user_by_username(store, username):
        raise ValidationError("User already exists")

    with store_faults("Error creating user"):
        user = User.model_validate({**data, "password": hash_password(password)})
        saved = store.create_document(COLLECTION, user.to_document())
    logger.info("User registered: %s", username)
    return _session(saved, secret)
