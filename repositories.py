"""
Repositories

One accessor per collection. Documents are returned serialized, with the
ObjectId ``_id`` exposed as a string ``id``.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
from pydantic import BaseModel

from database import serialize_doc
from schemas import Order, Product, User


class Repository:
    collection_name: str

    def __init__(self, db: Database):
        self.collection = db[self.collection_name]

    def _insert(self, model: BaseModel) -> Dict[str, Any]:
        # fields left unset are omitted rather than stored as null
        doc = {k: v for k, v in model.model_dump().items() if v is not None}
        res = self.collection.insert_one(doc)
        return serialize_doc(self.collection.find_one({"_id": res.inserted_id}))

    def update(self, doc_id: str, fields: Dict[str, Any]) -> None:
        obj_id = ObjectId(doc_id)
        if not fields:
            return
        # missing ids match nothing and are left as a no-op
        self.collection.update_one({"_id": obj_id}, {"$set": fields})

    def delete(self, doc_id: str) -> None:
        self.collection.delete_one({"_id": ObjectId(doc_id)})


class UserRepository(Repository):
    collection_name = User.__name__.lower()

    def ensure_indexes(self) -> None:
        self.collection.create_index([("username", ASCENDING)], unique=True)

    def create(self, user: User) -> Dict[str, Any]:
        return self._insert(user)

    def find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return serialize_doc(self.collection.find_one({"username": username}))


class ProductRepository(Repository):
    collection_name = Product.__name__.lower()

    def list(self) -> List[Dict[str, Any]]:
        return [serialize_doc(d) for d in self.collection.find()]

    def create(self, product: Product) -> Dict[str, Any]:
        return self._insert(product)


class OrderRepository(Repository):
    collection_name = Order.__name__.lower()

    def list(self, username: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if username is not None:
            query["username"] = username
        cursor = self.collection.find(query).sort("createdAt", DESCENDING)
        return [serialize_doc(d) for d in cursor]

    def create(self, order: Order) -> Dict[str, Any]:
        return self._insert(order)
