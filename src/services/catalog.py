# catalog reads for the shop and admin edits of products and their attributes
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from db import crud
from db.models import Category, Color, Product, ProductDraft, Size
from db.storage import ImageBucket
from utils.config import settings
from utils.errors import ValidationError, backend_errors
from utils.logger import get_logger
from utils.pure import parse_price, require, validate_hex

_logger = get_logger(__name__)

ALL_CATEGORIES = "All"

# attribute kind -> table
ATTRIBUTE_KINDS = {"category": "categories", "color": "colors", "size": "sizes"}

_ATTRIBUTE_FAILED = "Could not update the attribute."


# ---------------------------
# Shop
# ---------------------------


async def list_products(category: Optional[str] = None) -> List[Product]:
    if category == ALL_CATEGORIES:
        category = None
    with backend_errors("listing products", "Could not load the catalog."):
        return await crud.list_products(category)


async def get_product(product_id: str) -> Optional[Product]:
    with backend_errors(f"loading product {product_id}", "Could not load this product."):
        return await crud.get_product(product_id)


def shop_categories(products: Iterable[Product]) -> List[str]:
    """'All' followed by every category in use, in order of appearance."""
    seen: List[str] = []
    for p in products:
        if p.category and p.category not in seen:
            seen.append(p.category)
    return [ALL_CATEGORIES, *seen]


# ---------------------------
# Products
# ---------------------------


def build_product_draft(
    name: str,
    description: str,
    price,
    category: Optional[str] = None,
    colors: Sequence[str] = (),
    sizes: Sequence[str] = (),
    images: Sequence[str] = (),
    existing: Optional[Product] = None,
) -> ProductDraft:
    """Validate form input. Editing keeps the product's stock and flags;
    new products start as 'new' with 10 in stock."""
    name = require(name, "Name")
    price = parse_price(price)
    images = tuple(i for i in images if i)
    if len(images) > settings.max_product_images:
        raise ValidationError(
            f"A product can have at most {settings.max_product_images} images."
        )
    return ProductDraft(
        name=name,
        description=(description or "").strip(),
        price=price,
        stock=existing.stock if existing else 10,
        category=(category or None),
        colors=tuple(c for c in colors if c),
        sizes=tuple(s for s in sizes if s),
        images=images,
        is_new=existing.is_new if existing else True,
        is_bestseller=existing.is_bestseller if existing else False,
    )


async def save_product(draft: ProductDraft, existing: Optional[Product] = None) -> Product:
    with backend_errors(f"saving product {draft.name}", "Could not save the product."):
        if existing is None:
            product = await crud.create_product(draft)
            _logger.info(f"Created product {product.id} ({product.name})")
            return product
        if not await crud.update_product(existing.id, draft):
            raise ValidationError("This product no longer exists.")
        _logger.info(f"Updated product {existing.id}")
        return await crud.get_product(existing.id)


async def delete_product(product_id: str) -> bool:
    with backend_errors(f"deleting product {product_id}", "Could not delete the product."):
        deleted = await crud.delete_product(product_id)
    if deleted:
        _logger.info(f"Deleted product {product_id}")
    return deleted


def upload_product_image(
    images: Sequence[str], file_path: str, bucket: Optional[ImageBucket] = None
) -> Tuple[str, ...]:
    """Upload one more image for a product form; the cap is checked first."""
    if len(images) >= settings.max_product_images:
        raise ValidationError(
            f"A product can have at most {settings.max_product_images} images."
        )
    url = (bucket or ImageBucket()).upload(require(file_path, "Image path"))
    return (*images, url)


# ---------------------------
# Categories, colors, sizes
# ---------------------------


async def load_attributes() -> Tuple[List[Category], List[Color], List[Size]]:
    with backend_errors("loading attributes", "Could not load categories, colors and sizes."):
        categories = await crud.list_categories()
        colors = await crud.list_colors()
        sizes = await crud.list_sizes()
    return categories, colors, sizes


async def add_category(name: str) -> Category:
    name = require(name, "Category name")
    with backend_errors(f"adding category {name}", _ATTRIBUTE_FAILED):
        return await crud.create_category(name)


async def add_size(name: str) -> Size:
    name = require(name, "Size name")
    with backend_errors(f"adding size {name}", _ATTRIBUTE_FAILED):
        return await crud.create_size(name)


async def add_color(name: str, hex_code: str) -> Color:
    name = require(name, "Color name")
    hex_code = validate_hex(hex_code)
    with backend_errors(f"adding color {name}", _ATTRIBUTE_FAILED):
        return await crud.create_color(name, hex_code)


async def rename_attribute(
    kind: str, attr_id: str, name: str, hex_code: Optional[str] = None
) -> bool:
    table = _table_for(kind)
    name = require(name, "Name")
    if kind == "color":
        hex_code = validate_hex(hex_code)
    with backend_errors(f"renaming {kind} {attr_id}", _ATTRIBUTE_FAILED):
        return await crud.rename_attribute(table, attr_id, name, hex_code)


async def delete_attribute(kind: str, attr_id: str) -> bool:
    """Products that still reference it keep the old name."""
    table = _table_for(kind)
    with backend_errors(f"deleting {kind} {attr_id}", _ATTRIBUTE_FAILED):
        deleted = await crud.delete_attribute(table, attr_id)
    if deleted:
        _logger.info(f"Deleted {kind} {attr_id}")
    return deleted


def _table_for(kind: str) -> str:
    try:
        return ATTRIBUTE_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown attribute kind: {kind}") from None
