import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database

from database import connect
from repositories import OrderRepository, ProductRepository, UserRepository
from schemas import Credentials
from services import (
    AuthService,
    CatalogService,
    OrderService,
    PasswordHasher,
    PersistenceError,
    ShopError,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

logger = logging.getLogger(__name__)


def setup_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)


def init_services(app: FastAPI, db: Database) -> None:
    users = UserRepository(db)
    users.ensure_indexes()
    app.state.db = db
    app.state.auth = AuthService(users, PasswordHasher())
    app.state.catalog = CatalogService(ProductRepository(db))
    app.state.orders = OrderService(OrderRepository(db))


# Dependencies

def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def get_catalog(request: Request) -> CatalogService:
    return request.app.state.catalog


def get_orders(request: Request) -> OrderService:
    return request.app.state.orders


router = APIRouter(prefix="/api")


# Auth
@router.post("/register")
def register(payload: Credentials, auth: AuthService = Depends(get_auth)):
    auth.register(payload.username, payload.password)
    return {"message": "Registration successful"}


@router.post("/login")
def login(payload: Credentials, auth: AuthService = Depends(get_auth)):
    result = auth.login(payload.username, payload.password)
    if not result.success:
        return JSONResponse(status_code=401, content={"success": False, "message": "Login failed"})
    return {"success": True, "username": result.username}


# Products
@router.get("/products")
def list_products(catalog: CatalogService = Depends(get_catalog)):
    return catalog.list_products()


@router.post("/products")
def create_product(data: Dict[str, Any] = Body(...), catalog: CatalogService = Depends(get_catalog)):
    try:
        catalog.create_product(data)
    except PersistenceError as e:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to add product", "error": str(e)},
        )
    return {"success": True, "message": "Product added"}


@router.put("/products/{product_id}")
def update_product(product_id: str, data: Dict[str, Any] = Body(...), catalog: CatalogService = Depends(get_catalog)):
    try:
        catalog.update_product(product_id, data)
    except PersistenceError as e:
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
    return {"success": True, "message": "Product updated"}


@router.delete("/products/{product_id}")
def delete_product(product_id: str, catalog: CatalogService = Depends(get_catalog)):
    try:
        catalog.delete_product(product_id)
    except PersistenceError as e:
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
    return {"success": True, "message": "Product deleted"}


# Orders
@router.post("/orders")
def create_order(data: Dict[str, Any] = Body(...), orders: OrderService = Depends(get_orders)):
    orders.create_order(data)
    return {"message": "Order placed"}


@router.get("/orders")
def list_orders(orders: OrderService = Depends(get_orders)):
    return orders.list_orders()


@router.get("/orders/user/{username}")
def list_user_orders(username: str, orders: OrderService = Depends(get_orders)):
    return orders.list_orders_for_user(username)


@router.put("/orders/{order_id}")
def update_order(order_id: str, data: Dict[str, Any] = Body(...), orders: OrderService = Depends(get_orders)):
    orders.update_order(order_id, data)
    return {"success": True, "message": "Order updated"}


@router.delete("/orders/{order_id}")
def delete_order(order_id: str, orders: OrderService = Depends(get_orders)):
    orders.delete_order(order_id)
    return {"success": True, "message": "Order deleted"}


def create_app(db: Optional[Database] = None) -> FastAPI:
    """Build the application.

    When no database handle is given, one is opened on startup and an
    unreachable server aborts the launch.
    """
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if db is None:
            init_services(app, connect())
        yield

    app = FastAPI(title="Konveksi Shop API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        return JSONResponse(status_code=500, content={"message": str(exc)})

    @app.get("/")
    def read_root():
        return {"message": "Konveksi Shop API"}

    @app.get("/health")
    def health(request: Request):
        response = {
            "backend": "Running",
            "database": "Not Available",
            "database_name": None,
            "collections": [],
        }
        database = getattr(request.app.state, "db", None)
        if database is None:
            return response
        try:
            response["database_name"] = database.name
            response["collections"] = database.list_collection_names()
            response["database"] = "Available"
        except Exception as e:
            response["database"] = f"Error: {str(e)[:80]}"
        return response

    app.include_router(router)

    if db is not None:
        init_services(app, db)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host=host, port=port)
