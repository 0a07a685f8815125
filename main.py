import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import (
    CORS_ORIGINS,
    DATABASE_NAME,
    DATABASE_URL,
    DB_TIMEOUT_MS,
    JWT_SECRET,
    LOG_LEVEL,
    MAX_BODY_SIZE,
    PORT,
)
from database import DocumentStore, StoreError
from errors import AuthenticationError, ServiceError
from schemas import Activity, Booking, Product, User
from services import activity, auth, bookings, products, reports

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = DocumentStore(DATABASE_URL, DATABASE_NAME, DB_TIMEOUT_MS).connect()
    app.state.store = store
    yield
    store.close()


app = FastAPI(title="Rental Booking API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# Plumbing
# -----------------------------

@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > MAX_BODY_SIZE:
        return JSONResponse(status_code=413, content={"message": "Request body is too large"})
    return await call_next(request)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = ", ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())
    return JSONResponse(status_code=400, content={"message": f"Validation error: {problems}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Something went wrong!"})


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def current_user(authorization: Optional[str] = Header(None)) -> str:
    """Username from a bearer token; anonymous callers are logged as "system"."""
    if not authorization:
        return "system"
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Invalid authorization header")
    return auth.decode_token(token, JWT_SECRET).get("username") or "system"


# -----------------------------
# Health & Schema
# -----------------------------

@app.get("/")
def read_root():
    return {"message": "Rental Booking API Running"}


@app.get("/health")
def health():
    return {"status": "OK", "message": "Server is running"}


@app.get("/schema")
def get_schema():
    return {
        "product": Product.model_json_schema(by_alias=True),
        "booking": Booking.model_json_schema(by_alias=True),
        "activity": Activity.model_json_schema(by_alias=True),
        "user": User.model_json_schema(by_alias=True),
    }


@app.get("/test")
def test_database(store: DocumentStore = Depends(get_store)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": store.name,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = store.collection_names()[:10]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except StoreError as e:
        logger.error("Database status check failed: %s", e.message)
        response["database"] = f"⚠️  Error: {e.kind.value}"
    return response


# -----------------------------
# Products
# -----------------------------

@app.post("/api/products", status_code=201)
def create_product(
    payload: Dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
    user: str = Depends(current_user),
):
    product = products.create_product(store, payload)
    activity.log_activity(store, f"Added product {product['name']}", user)
    return product


@app.get("/api/products")
def list_products(store: DocumentStore = Depends(get_store)):
    return products.get_all_products(store)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    return products.get_product_by_id(store, product_id)


@app.put("/api/products/{product_id}")
def update_product(
    product_id: str,
    payload: Dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
    user: str = Depends(current_user),
):
    product = products.update_product(store, product_id, payload)
    activity.log_activity(store, f"Updated product {product['name']}", user)
    return product


@app.delete("/api/products/{product_id}")
def delete_product(
    product_id: str,
    store: DocumentStore = Depends(get_store),
    user: str = Depends(current_user),
):
    product = products.delete_product(store, product_id)
    activity.log_activity(store, f"Deleted product {product['name']}", user)
    return product


# -----------------------------
# Bookings
# -----------------------------

@app.post("/api/bookings", status_code=201)
def create_booking(
    payload: Dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
    user: str = Depends(current_user),
):
    booking = bookings.create_booking(store, payload)
    activity.log_activity(store, f"New booking {booking['bookingId']} for {booking['customer']['name']}", user)
    return booking


@app.get("/api/bookings")
def list_bookings(store: DocumentStore = Depends(get_store)):
    return bookings.get_all_bookings(store)


@app.get("/api/bookings/{booking_id}")
def get_booking(booking_id: str, store: DocumentStore = Depends(get_store)):
    return bookings.get_booking_by_id(store, booking_id)


@app.put("/api/bookings/{booking_id}")
def update_booking(
    booking_id: str,
    payload: Dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_store),
    user: str = Depends(current_user),
):
    booking = bookings.update_booking(store, booking_id, payload)
    activity.log_activity(store, f"Updated booking {booking['bookingId']}", user)
    return booking


@app.delete("/api/bookings/{booking_id}")
def delete_booking(
    booking_id: str,
    store: DocumentStore = Depends(get_store),
    user: str = Depends(current_user),
):
    booking = bookings.delete_booking(store, booking_id)
    activity.log_activity(store, f"Deleted booking {booking['bookingId']}", user)
    return booking


# -----------------------------
# Activity & Reports
# -----------------------------

@app.get("/api/activities")
def list_activities(limit: int = Query(10, ge=1, le=100), store: DocumentStore = Depends(get_store)):
    return activity.get_activities(store, limit)


@app.post("/api/activities", status_code=201)
def create_activity(payload: Dict[str, Any] = Body(...), store: DocumentStore = Depends(get_store)):
    return activity.create_activity(store, payload)


@app.get("/api/reports/summary")
def report_summary(store: DocumentStore = Depends(get_store)):
    return reports.get_summary(store)


@app.get("/api/reports/products")
def report_products(limit: int = Query(5, ge=1, le=50), store: DocumentStore = Depends(get_store)):
    return reports.get_product_popularity(store, limit)


# -----------------------------
# Auth
# -----------------------------

class LoginRequest(BaseModel):
    username: str
    password: str


@app.post("/api/auth/login")
def login(payload: LoginRequest, store: DocumentStore = Depends(get_store)):
    return auth.login(store, payload.username, payload.password, JWT_SECRET)


@app.post("/api/auth/register", status_code=201)
def register(payload: Dict[str, Any] = Body(...), store: DocumentStore = Depends(get_store)):
    return auth.register(store, payload, JWT_SECRET)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
