"""
Authentication service for user management and JWT token handling.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database.connection import USERS
from models.common import parse_object_id, utc_now
from models.user import AuthResponse, TokenData, User, UserCreate, UserInDB, UserLogin
from services.errors import AuthError, ConflictError, ForbiddenError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email or password"
USER_EXISTS = "Username or email already exists"


def ensure_owner(owner_id, identity: User, message: str = "Not permitted"):
    """
    Raise ForbiddenError unless `identity` owns the resource.

    Ids are compared as strings, so ObjectId and str owners both work. A
    resource whose owner is gone belongs to nobody.
    """
    if owner_id is None or identity is None or str(owner_id) != str(identity.id):
        raise ForbiddenError(message)


class AuthService:
    """Authentication service class"""

    def __init__(self, settings, db: Database):
        self.settings = settings
        self.users_collection = db[USERS]
        # Password hashing context
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.BCRYPT_ROUNDS,
        )

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            # Unrecognized or corrupt hash
            return False

    def get_password_hash(self, password: str) -> str:
        """Hash a password"""
        return self.pwd_context.hash(password)

    def create_access_token(self, user: UserInDB, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        if expires_delta is None:
            expires_delta = timedelta(days=self.settings.JWT_ACCESS_TOKEN_EXPIRE_DAYS)
        expire = datetime.now(timezone.utc) + expires_delta

        to_encode = {
            "sub": str(user.id),
            "username": user.username,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(to_encode, self.settings.JWT_SECRET_KEY, algorithm=self.settings.JWT_ALGORITHM)

    def verify_token(self, token: str, token_type: str = "access") -> Optional[TokenData]:
        """Verify and decode a JWT token"""
        try:
            payload = jwt.decode(token, self.settings.JWT_SECRET_KEY, algorithms=[self.settings.JWT_ALGORITHM])

            # Check token type
            if payload.get("type") != token_type:
                return None

            user_id: str = payload.get("sub")
            username: str = payload.get("username")

            if user_id is None:
                return None

            return TokenData(user_id=user_id, username=username)
        except JWTError:
            return None

    async def get_user_by_email(self, email: str) -> Optional[UserInDB]:
        """Get user by email"""
        user_data = self.users_collection.find_one({"email": email})
        if user_data:
            return UserInDB(**user_data)
        return None

    async def get_user_by_id(self, user_id: str) -> Optional[UserInDB]:
        """Get user by ID"""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        user_data = self.users_collection.find_one({"_id": oid})
        if user_data:
            return UserInDB(**user_data)
        return None

    async def register(self, user_create: UserCreate) -> AuthResponse:
        """
        Create a new user and sign them in.

        Uniqueness is checked up front for a friendly error, but the unique
        indexes on username and email are what settle concurrent attempts.
        """
        if not user_create.username or not user_create.email or not user_create.password:
            raise ValidationError("Please provide username, email and password")

        if len(user_create.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        username = user_create.username
        email = str(user_create.email).strip().lower()

        existing_user = self.users_collection.find_one({"$or": [{"username": username}, {"email": email}]})
        if existing_user:
            raise ConflictError(USER_EXISTS)

        user_doc = {
            "username": username,
            "email": email,
            "hashed_password": self.get_password_hash(user_create.password),
            "created_at": utc_now(),
        }

        try:
            result = self.users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            logger.info(f"Concurrent registration rejected for {username}")
            raise ConflictError(USER_EXISTS)

        user_doc["_id"] = result.inserted_id
        user = UserInDB(**user_doc)
        logger.info(f"Registered user {user.id} ({user.username})")

        return AuthResponse(token=self.create_access_token(user), user=self.user_to_public(user))

    async def login(self, user_login: UserLogin) -> AuthResponse:
        """Authenticate by email and password and issue a token"""
        if not user_login.email or not user_login.password:
            raise ValidationError("Please provide email and password")

        user = await self.get_user_by_email(user_login.email.strip().lower())

        # Same error for an unknown email and a wrong password
        if not user or not self.verify_password(user_login.password, user.hashed_password):
            raise AuthError(INVALID_CREDENTIALS)

        return AuthResponse(token=self.create_access_token(user), user=self.user_to_public(user))

    async def validate(self, token: Optional[str]) -> User:
        """Resolve a bearer token to the identity it was issued for"""
        if not token:
            raise AuthError("Not authenticated")

        token_data = self.verify_token(token, "access")
        if token_data is None or token_data.user_id is None:
            raise AuthError("Invalid or expired token")

        user = await self.get_user_by_id(token_data.user_id)
        if user is None:
            raise AuthError("User no longer exists")

        return self.user_to_public(user)

    @staticmethod
    def user_to_public(user: UserInDB) -> User:
        """Convert UserInDB to User (for API responses)"""
        return User(
            id=str(user.id),
            username=user.username,
            email=user.email,
            created_at=user.created_at,
        )
