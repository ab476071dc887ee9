import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

import bookings
import places
import reviews
from auth import create_access_token, get_current_user, hash_password, public_user, verify_password
from config import settings
from database import get_db, sanitize
from errors import ApplicationError, Conflict, ErrorCode, Unauthenticated
from logging_config import setup_logging
from schemas import NonEmptyStr, Role, User as UserSchema

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("%s %s starting", settings.api_title, settings.api_version)
    yield


# App and CORS
app = FastAPI(title=settings.api_title, version=settings.api_version, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handlers

@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.code == ErrorCode.UNAUTHENTICATED else None
    return JSONResponse(status_code=exc.http_status, content=exc.model_dump(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    body: Dict[str, Any] = {
        "detail": first.get("msg", "Invalid request"),
        "code": ErrorCode.VALIDATION_ERROR.value,
        "errors": jsonable_encoder(errors),
    }
    if loc:
        body["field"] = ".".join(loc)
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error", "code": ErrorCode.SERVER_ERROR.value})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error", "code": ErrorCode.SERVER_ERROR.value})


# Request/Response Models
class SignupRequest(BaseModel):
    email: EmailStr
    username: NonEmptyStr
    password: str = Field(..., min_length=6)
    role: Role = "visitor"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str
    user: Dict[str, Any]


# Auth Routes
@app.post("/api/auth/signup", response_model=TokenResponse, status_code=201)
def signup(payload: SignupRequest, db: Database = Depends(get_db)):
    if db["user"].find_one({"email": payload.email}):
        raise Conflict("User already exists", field="email")
    user_doc = UserSchema(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    ).model_dump()
    try:
        res = db["user"].insert_one(user_doc)
    except DuplicateKeyError:
        raise Conflict("User already exists", field="email")
    user_doc["_id"] = res.inserted_id
    user = sanitize(user_doc)
    logger.info("User signed up as %s", user["role"], extra={"user_id": user["id"]})
    return TokenResponse(token=create_access_token(user["id"]), user=public_user(user))


@app.post("/api/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise Unauthenticated("Invalid credentials")
    user = sanitize(user)
    return TokenResponse(token=create_access_token(user["id"]), user=public_user(user))


@app.get("/api/auth/me")
def me(current_user=Depends(get_current_user)):
    return {"user": public_user(current_user)}


@app.post("/api/auth/logout")
def logout(current_user=Depends(get_current_user)):
    # Tokens are stateless; the client drops its session
    return {"message": "Logged out successfully"}


# Utility endpoints
@app.get("/")
def root():
    return {"message": "Local Explorer API running"}


@app.get("/api/health")
def health(db: Database = Depends(get_db)):
    try:
        collections = db.list_collection_names()
        return {"status": "OK", "database": "ok", "collections": collections}
    except PyMongoError as e:
        return {"status": "OK", "database": f"error: {e}"}


app.include_router(places.router, prefix="/api", tags=["places"])
app.include_router(reviews.router, prefix="/api", tags=["reviews"])
app.include_router(bookings.router, prefix="/api", tags=["bookings"])
