# provide dataclass models

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    MASTER_ADMIN = "master_admin"

    @property
    def label(self) -> str:
        return {
            Role.CUSTOMER: "Customer",
            Role.ADMIN: "Administrator",
            Role.MASTER_ADMIN: "Master Admin",
        }[self]


class Capability(str, Enum):
    VIEW_ADMIN_PANEL = "view_admin_panel"
    MANAGE_CATALOG = "manage_catalog"
    VIEW_USERS = "view_users"
    PROMOTE_USERS = "promote_users"
    MANAGE_USERS = "manage_users"  # create / update / delete accounts


_STAFF = frozenset(
    {
        Capability.VIEW_ADMIN_PANEL,
        Capability.MANAGE_CATALOG,
        Capability.VIEW_USERS,
        Capability.PROMOTE_USERS,
    }
)

ROLE_CAPABILITIES = {
    Role.CUSTOMER: frozenset(),
    Role.ADMIN: _STAFF,
    Role.MASTER_ADMIN: _STAFF | {Capability.MANAGE_USERS},
}


def has_capability(role: Optional[Role], capability: Capability) -> bool:
    """Single place where roles are turned into permissions."""
    if role is None:
        return False
    return capability in ROLE_CAPABILITIES[Role(role)]


class OrderStatus(str, Enum):
    IN_REVIEW = "em_analise"  # initial status of every new order
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return {
            OrderStatus.IN_REVIEW: "In review",
            OrderStatus.PENDING: "Pending",
            OrderStatus.PAID: "Paid",
            OrderStatus.SHIPPED: "Shipped",
            OrderStatus.CANCELLED: "Cancelled",
        }[self]


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str
    price: Decimal
    stock: int
    category: Optional[str] = None
    colors: Tuple[str, ...] = ()
    sizes: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    is_new: bool = False
    is_bestseller: bool = False
    created_at: Optional[datetime] = None

    @property
    def cover_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


@dataclass(frozen=True)
class ProductDraft:
    """Admin-editable product fields, already validated."""

    name: str
    description: str
    price: Decimal
    stock: int = 10
    category: Optional[str] = None
    colors: Tuple[str, ...] = ()
    sizes: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    is_new: bool = True
    is_bestseller: bool = False


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def with_quantity(self, quantity: int) -> "CartItem":
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class RemoteCartRow:
    id: str
    user_id: str
    product_id: str
    quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Category:
    id: str
    name: str


@dataclass(frozen=True)
class Color:
    id: str
    name: str
    hex_code: str


@dataclass(frozen=True)
class Size:
    id: str
    name: str


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime


@dataclass(frozen=True)
class OrderItem:
    id: str
    order_id: str
    product_id: str
    quantity: int
    unit_price: Decimal  # price snapshot at order time

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Profile:
    id: str
    full_name: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    role: Role = Role.CUSTOMER

    def can(self, capability: Capability) -> bool:
        return has_capability(self.role, capability)


@dataclass(frozen=True)
class ContactMessage:
    id: str
    name: str
    email: str
    subject: str
    message: str
    created_at: datetime


@dataclass(frozen=True)
class Lead:
    id: str
    email: str
    source: str
    created_at: datetime
