"""
Services

Business rules for authentication, the product catalog and orders. Store
failures are translated into ``ConflictError`` or ``PersistenceError`` with
the underlying message preserved, so the API layer can pass it through.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from bson.errors import BSONError
from passlib.context import CryptContext
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from repositories import OrderRepository, ProductRepository, UserRepository
from schemas import Order, OrderUpdate, Product, ProductUpdate, User

logger = logging.getLogger(__name__)


class ShopError(Exception):
    """Base class for errors surfaced to API clients."""


class ConflictError(ShopError):
    """A write violated a uniqueness constraint."""


class PersistenceError(ShopError):
    """Any other failure while talking to the store."""


@contextmanager
def store_errors() -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as e:
        raise ConflictError(str(e)) from e
    except ValidationError as e:
        # values the store could not cast, e.g. a non-numeric price
        raise PersistenceError(str(e)) from e
    except (PyMongoError, BSONError) as e:
        logger.exception("Store operation failed")
        raise PersistenceError(str(e)) from e


class PasswordHasher:
    def __init__(self, rounds: int = 10):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return self.context.verify(plain_password, hashed_password)
        except ValueError:
            # unrecognised or malformed stored hash
            return False


@dataclass
class LoginResult:
    success: bool
    username: Optional[str] = None


class AuthService:
    def __init__(self, users: UserRepository, hasher: PasswordHasher):
        self.users = users
        self.hasher = hasher

    def register(self, username: str, password: str) -> bool:
        user = User(username=username, password=self.hasher.hash(password))
        try:
            with store_errors():
                self.users.create(user)
        except ConflictError:
            logger.warning("Registration rejected, username %r already exists", username)
            raise
        logger.info("Registered user %r", username)
        return True

    def login(self, username: str, password: str) -> LoginResult:
        """Check a username/password pair.

        Unknown users and wrong passwords give the same result. No session
        is created; clients resend the username on later requests.
        """
        with store_errors():
            user = self.users.find_by_username(username)
        if not user or not self.hasher.verify(password, user.get("password", "")):
            logger.warning("Failed login for %r", username)
            return LoginResult(success=False)
        return LoginResult(success=True, username=user["username"])


class CatalogService:
    def __init__(self, products: ProductRepository):
        self.products = products

    def list_products(self) -> List[Dict[str, Any]]:
        with store_errors():
            return self.products.list()

    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        with store_errors():
            return self.products.create(Product(**fields))

    def update_product(self, product_id: str, fields: Dict[str, Any]) -> bool:
        with store_errors():
            self.products.update(product_id, ProductUpdate(**fields).model_dump(exclude_unset=True))
        return True

    def delete_product(self, product_id: str) -> bool:
        with store_errors():
            self.products.delete(product_id)
        return True


class OrderService:
    def __init__(self, orders: OrderRepository):
        self.orders = orders

    def create_order(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        # total and items are stored as submitted
        with store_errors():
            return self.orders.create(Order(**fields))

    def list_orders(self) -> List[Dict[str, Any]]:
        with store_errors():
            return self.orders.list()

    def list_orders_for_user(self, username: str) -> List[Dict[str, Any]]:
        with store_errors():
            return self.orders.list(username=username)

    def update_order(self, order_id: str, fields: Dict[str, Any]) -> bool:
        with store_errors():
            self.orders.update(order_id, OrderUpdate(**fields).model_dump(exclude_unset=True))
        return True

    def delete_order(self, order_id: str) -> bool:
        with store_errors():
            self.orders.delete(order_id)
        return True
