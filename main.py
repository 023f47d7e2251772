import logging
import os
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
import validation
from auth import end_session, get_session, request_token, require_auth, start_session
from database import close_db, get_db
from errors import DuplicateUserError, FieldError, HabitNotFoundError, IdAllocationError, InvalidIdError
from habits import HabitStore
from identifiers import get_allocator
from schemas import AuthMessage, AuthStatus, Habit, HabitIn, LoginIn, RegisterIn
from users import UserStore

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_VERSION = os.getenv("APP_VERSION", "1.0.0")


def cors_settings(value: str):
    """Origins from a comma-separated list; credentials only for explicit origins."""
    origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    return origins, "*" not in origins


CORS_ORIGINS, CORS_CREDENTIALS = cors_settings(os.getenv("CORS_ORIGINS", "*"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_db()


# App setup
app = FastAPI(title="FocusFlow", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed)
    return response


# Error rendering: every error body is {"error": message}
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        detail = "Route not found"
    return JSONResponse({"error": detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": validation.first_error_message(exc.errors())},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(PyMongoError)
@app.exception_handler(IdAllocationError)
@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


# Dependencies
def get_habit_store(db: Database = Depends(get_db)) -> HabitStore:
    return HabitStore(db)


def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)


def habit_key(habit_id: str, store: HabitStore = Depends(get_habit_store)):
    try:
        return store.ids.parse(habit_id)
    except InvalidIdError:
        raise HTTPException(status_code=400, detail="Invalid id")


@app.get("/")
def read_root():
    return {"message": "FocusFlow backend running"}


@app.get("/api/info")
def info():
    return {
        "project": "FocusFlow",
        "description": "A simple habit and routine tracker that helps you stay consistent with clear weekly insights.",
        "version": APP_VERSION,
        "routes": {
            "habits": "/api/habits",
            "habit": "/api/habits/{id}",
            "login": "/api/login",
            "logout": "/api/logout",
            "register": "/api/register",
            "auth_status": "/api/auth/status",
            "health": "/api/health",
        },
        "technologies": ["FastAPI", "MongoDB", "pydantic"],
    }


@app.get("/api/health")
def health():
    response = {
        "backend": "running",
        "database": "not connected",
        "database_name": None,
        "id_scheme": get_allocator().name,
        "collections": [],
    }
    try:
        db = database.get_db()
        response["database_name"] = db.name
        response["collections"] = sorted(db.list_collection_names())[:10]
        response["database"] = "connected"
    except PyMongoError as exc:
        logger.warning("Health check could not reach MongoDB: %s", exc.__class__.__name__)
        response["database"] = f"error: {exc.__class__.__name__}"
    return response


# Auth endpoints
@app.post("/api/login", response_model=AuthMessage)
def login(
    body: LoginIn,
    response: Response,
    db: Database = Depends(get_db),
    users: UserStore = Depends(get_user_store),
):
    user = users.find_by_username(body.username)
    if not user or not users.verify_password(user, body.password):
        logger.info("Failed login for %s", body.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    start_session(response, db, user)
    logger.info("User %s logged in", user["username"])
    return {"message": "Login successful", "user": {"username": user["username"], "email": user.get("email")}}


@app.post("/api/logout")
def logout(response: Response, token: Optional[str] = Depends(request_token), db: Database = Depends(get_db)):
    end_session(response, db, token)
    return {"message": "Logout successful"}


@app.get("/api/auth/status", response_model=AuthStatus, response_model_exclude_none=True)
def auth_status(session: Optional[dict] = Depends(get_session)):
    if session is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": {"username": session["username"]}}


@app.post("/api/register", response_model=AuthMessage, status_code=201)
def register(body: RegisterIn, users: UserStore = Depends(get_user_store)):
    try:
        user = users.create(body.username, body.email, body.password)
    except DuplicateUserError:
        raise HTTPException(status_code=409, detail="User already exists")
    return {"message": "User created successfully", "user": {"username": user["username"], "email": user["email"]}}


# Habits CRUD
@app.get("/api/habits", response_model=List[Habit])
def get_habits(
    category: Optional[str] = None,
    frequency: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    store: HabitStore = Depends(get_habit_store),
):
    filters = {}
    for field, value in (("category", category), ("frequency", frequency), ("priority", priority), ("status", status)):
        try:
            value = validation.check_choice(field, value)
        except FieldError as exc:
            raise HTTPException(status_code=400, detail=exc.message)
        if value:
            filters[field] = value
    return store.get_all(filters)


@app.get("/api/habits/{habit_id}", response_model=Habit)
def get_habit(key=Depends(habit_key), store: HabitStore = Depends(get_habit_store)):
    habit = store.get_by_id(key)
    if not habit:
        raise HTTPException(status_code=404, detail="Habit not found")
    return habit


@app.post("/api/habits", response_model=Habit, status_code=201)
def create_habit(body: HabitIn, session: dict = Depends(require_auth), store: HabitStore = Depends(get_habit_store)):
    try:
        habit = store.create(body.model_dump())
    except FieldError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    logger.info("Habit %s created by %s", habit["id"], session["username"])
    return habit


@app.put("/api/habits/{habit_id}", response_model=Habit)
def update_habit(
    body: HabitIn,
    session: dict = Depends(require_auth),
    key=Depends(habit_key),
    store: HabitStore = Depends(get_habit_store),
):
    if store.get_by_id(key) is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    try:
        store.update(key, body.model_dump(exclude_unset=True))
    except FieldError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    habit = store.get_by_id(key)
    if habit is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    return habit


@app.delete("/api/habits/{habit_id}")
def delete_habit(
    session: dict = Depends(require_auth),
    key=Depends(habit_key),
    store: HabitStore = Depends(get_habit_store),
):
    if not store.delete(key):
        raise HTTPException(status_code=404, detail="Habit not found")
    logger.info("Habit %s deleted by %s", key, session["username"])
    return {"message": "Habit deleted successfully"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
