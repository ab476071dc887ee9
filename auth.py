import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

from config import settings
from database import get_db, sanitize, to_obj_id
from errors import Forbidden, NotFound, Unauthenticated

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# Missing tokens are reported by get_current_user
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.access_token_expire_days))
    return jwt.encode({"sub": user_id, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def public_user(user: Dict) -> Dict[str, Any]:
    """User payload safe to return to clients (no password hash)."""
    return {"id": user["id"], "email": user["email"], "username": user["username"], "role": user["role"]}


def _user_from_token(token: str, db: Database) -> Optional[Dict]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    try:
        oid = to_obj_id(user_id, "User")
    except NotFound:
        return None
    user = db["user"].find_one({"_id": oid}, {"password_hash": 0})
    return sanitize(user) if user else None


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme), db: Database = Depends(get_db)
) -> Dict:
    if not token:
        raise Unauthenticated("No token, authorization denied")
    user = _user_from_token(token, db)
    if user is None:
        raise Unauthenticated("Token is not valid")
    return user


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme), db: Database = Depends(get_db)
) -> Optional[Dict]:
    """Like get_current_user, but anonymous or invalid tokens yield None."""
    if not token:
        return None
    return _user_from_token(token, db)


def require_role(role: str, message: str = "Insufficient permissions"):
    def role_dep(current_user=Depends(get_current_user)):
        if current_user.get("role") != role:
            raise Forbidden(message)
        return current_user
    return role_dep


def owns(user: Optional[Dict], owner_id: Any) -> bool:
    """True when ``owner_id`` (ObjectId or string reference) is the user's id."""
    if not user or owner_id is None:
        return False
    return str(user["id"]) == str(owner_id)


def ensure_owner(user: Optional[Dict], owner_id: Any, message: str = "Access denied") -> None:
    if not owns(user, owner_id):
        raise Forbidden(message)
