"""
User repository for the Campus Library API.

Handles registration, password checks and bearer tokens. Passwords are
stored as salted PBKDF2 hashes; tokens are random and opaque, and a
token is valid for as long as its row exists.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..database.schema import AuthToken as AuthTokenDB
from ..database.schema import RoleEnum
from ..database.schema import User as UserDB
from ..database.session import safe_commit, safe_query
from ..errors import AuthenticationError, ConflictError
from ..models.user import AuthSession, UserLogin, UserRegister
from ..models.user import User as UserModel
from .repository import BaseRepository, new_id

logger = logging.getLogger(__name__)

_HASH_ALGORITHM = "sha256"
_HASH_ITERATIONS = 260_000


def hash_password(password: str, salt: str | None = None) -> str:
    """Hash a password as ``pbkdf2_sha256$iterations$salt$hex``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        _HASH_ALGORITHM, password.encode(), salt.encode(), _HASH_ITERATIONS
    ).hex()
    return f"pbkdf2_{_HASH_ALGORITHM}${_HASH_ITERATIONS}${salt}${digest}"


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash in constant time."""
    try:
        scheme, iterations, salt, expected = password_hash.split("$")
    except ValueError:
        return False
    algorithm = scheme.removeprefix("pbkdf2_")
    digest = hashlib.pbkdf2_hmac(
        algorithm, password.encode(), salt.encode(), int(iterations)
    ).hex()
    return hmac.compare_digest(digest, expected)


class UserRepository(BaseRepository[UserDB, UserModel]):
    """Repository for accounts and their bearer tokens."""

    @property
    def model_class(self):
        return UserDB

    @property
    def response_schema(self):
        return UserModel

    @property
    def entity_name(self) -> str:
        return "User"

    def get_by_email(self, email: str) -> UserDB | None:
        return safe_query(
            self.session,
            lambda s: s.execute(
                select(UserDB).where(UserDB.email == email.lower())
            ).scalar_one_or_none(),
            "Failed to get user by email",
        )

    def register(self, data: UserRegister) -> AuthSession:
        """
        Create an account and sign it in.

        Raises:
            ConflictError: If the email is already registered
        """
        if self.get_by_email(data.email) is not None:
            raise ConflictError("User already exists with this email")

        now = datetime.now()
        user = UserDB(
            id=new_id("user"),
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            role=RoleEnum(data.role.value),
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as e:
            # Another registration took the email after the lookup above
            self.session.rollback()
            raise ConflictError("User already exists with this email") from e

        token = self._add_token(user.id)
        safe_commit(self.session, "register user")

        logger.info("User registered: %s (%s)", user.id, user.role.value)
        return AuthSession(token=token, user=self._to_response_model(user))

    def login(self, data: UserLogin) -> AuthSession:
        """
        Check credentials and issue a new token.

        Unknown email and wrong password fail the same way.

        Raises:
            AuthenticationError: If the credentials do not match
        """
        user = self.get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("Failed login for %s", data.email)
            raise AuthenticationError("Invalid credentials")

        token = self.issue_token(user.id)
        logger.info("User logged in: %s", user.id)
        return AuthSession(token=token, user=self._to_response_model(user))

    def issue_token(self, user_id: str) -> str:
        """Issue and store a new bearer token for a user."""
        token = self._add_token(user_id)
        safe_commit(self.session, "issue token")
        return token

    def get_by_token(self, token: str) -> UserModel:
        """
        Resolve a bearer token to its user.

        Raises:
            AuthenticationError: If the token is unknown
        """
        row = safe_query(
            self.session,
            lambda s: s.execute(
                select(AuthTokenDB).where(AuthTokenDB.token == token)
            ).scalar_one_or_none(),
            "Failed to resolve token",
        )
        if row is None or row.user is None:
            raise AuthenticationError("Not authorized, token failed")
        return self._to_response_model(row.user)

    def _to_response_model(self, db_obj: UserDB) -> UserModel:
        return UserModel(
            id=db_obj.id,
            name=db_obj.name,
            email=db_obj.email,
            role=db_obj.role.value,
            created_at=db_obj.created_at,
        )

    def _add_token(self, user_id: str) -> str:
        token = secrets.token_hex(32)
        self.session.add(AuthTokenDB(token=token, user_id=user_id, created_at=datetime.now()))
        return token
