
import logging
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import jwt, JWTError, ExpiredSignatureError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt_sha256", "bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class TokenIssuer:
    """Issues and checks signed bearer tokens.

    Built once at startup from settings and handed to whoever needs it. Tokens
    carry the user's email as ``sub`` and their numeric id as ``userId``.
    Nothing here raises on a bad token: callers get ``False``/``None`` and
    treat the request as unauthenticated.
    """

    def __init__(self, secret_key: str, expire_minutes: int, algorithm: str = "HS256"):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: int, username: str, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": username,
            "userId": user_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def _claims(self, token: str | None) -> dict | None:
        if not token:
            return None
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            logger.warning("JWT token is expired: %s", e)
        except JWTError as e:
            logger.warning("JWT validation failed: %s", e)
        return None

    def validate(self, token: str | None) -> bool:
        return self._claims(token) is not None

    def extract_user_id(self, token: str | None) -> int | None:
        claims = self._claims(token)
        if claims is None:
            return None
        user_id = claims.get("userId")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            logger.warning("JWT token carries no integer userId claim")
            return None
        return user_id

    def extract_username(self, token: str | None) -> str | None:
        claims = self._claims(token)
        if claims is None:
            return None
        return claims.get("sub")
