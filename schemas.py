"""
Schemas for the shop API

Records are pydantic models serialized with camelCase keys, the shape the
frontend scripts expect. Prices travel as JSON numbers, computed totals as
two-decimal strings.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

CENTS = Decimal("0.01")

Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Money = Annotated[Decimal, PlainSerializer(lambda v: f"{v:.2f}", return_type=str, when_used="json")]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Catalog

class Product(ApiModel):
    id: int
    name: str
    description: str = ""
    price: Price = Field(..., ge=0)
    category: str
    stock: int = Field(..., ge=0)
    image_path: str = ""


# Cart

class CartItem(ApiModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class Cart(ApiModel):
    user_id: int
    items: List[CartItem] = []


class CartLine(ApiModel):
    product_id: int
    quantity: int
    product: Optional[Product] = None


class CartView(ApiModel):
    user_id: int
    items: List[CartLine] = []
    total: Money = Decimal("0.00")


# Orders

class OrderLine(ApiModel):
    product_id: int
    name: str
    price: Price
    quantity: int


class Order(ApiModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    items: List[OrderLine]
    total: Money
    shipping_address: Optional[str] = None
    status: Literal["pending"] = "pending"
    created_at: datetime


# Users

class UserPublic(ApiModel):
    id: int
    username: str
    email: str


class UserListing(UserPublic):
    created_at: Optional[datetime] = None


# Request bodies. Fields are optional so that presence checks happen in the
# services and produce the same messages as every other validation failure.

class AddToCartBody(ApiModel):
    user_id: Optional[int] = None
    product_id: Optional[int] = None
    quantity: Optional[int] = None


class OrderItemBody(ApiModel):
    product_id: Optional[int] = None
    quantity: Optional[int] = None


class PlaceOrderBody(ApiModel):
    user_id: Optional[int] = None
    items: Optional[List[OrderItemBody]] = None
    shipping_address: Optional[str] = None


class RegisterBody(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


# Demo collaborators

class Item(BaseModel):
    id: int
    name: Optional[str] = None
    description: Optional[str] = None


class ItemBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class Voter(ApiModel):
    id: int
    name: Optional[str] = None
    age: Optional[int] = None
    has_voted: bool = False


class VoterBody(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = None


class VoteCheckBody(ApiModel):
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
