from __future__ import annotations

from typing import List, Optional, Tuple

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, ListItem, ListView, Select, SelectionList, TextArea

from db.models import Category, Color, Product, Size
from db.storage import ImageBucket
from services import catalog
from utils.config import settings
from utils.errors import StoreError


class ProductFormModal(ModalScreen[Optional[Product]]):
    """
    Create or edit a product. Returns the saved Product, or None if cancelled.
    """

    def __init__(
        self,
        attributes: Tuple[List[Category], List[Color], List[Size]],
        product: Optional[Product] = None,
        bucket: Optional[ImageBucket] = None,
    ) -> None:
        super().__init__()
        self._categories, self._colors, self._sizes = attributes
        self._product = product
        self._bucket = bucket or ImageBucket()
        self._images: Tuple[str, ...] = product.images if product else ()

    def compose(self) -> ComposeResult:
        p = self._product
        with VerticalScroll(id="div-product-form"):
            yield Label("Edit product" if p else "New product", id="label-form-title")
            yield Label("Name")
            yield Input(value=p.name if p else "", id="input-prod-name")
            yield Label("Description")
            yield TextArea(p.description if p else "", id="textarea-prod-desc")
            yield Label("Price (R$)")
            yield Input(
                value=str(p.price) if p else "",
                placeholder="0,00",
                id="input-prod-price",
            )
            yield Label("Category")
            # names of categories no longer in the table are still offered
            names = [c.name for c in self._categories]
            if p and p.category and p.category not in names:
                names.append(p.category)
            yield Select(
                [(n, n) for n in names],
                value=p.category if p and p.category else Select.BLANK,
                id="select-prod-category",
                prompt="No category",
            )
            with Horizontal(id="hort-prod-variants"):
                with Vertical():
                    yield Label("Colors")
                    yield SelectionList[str](
                        *self._options([c.name for c in self._colors], p.colors if p else ()),
                        id="sel-prod-colors",
                    )
                with Vertical():
                    yield Label("Sizes")
                    yield SelectionList[str](
                        *self._options([s.name for s in self._sizes], p.sizes if p else ()),
                        id="sel-prod-sizes",
                    )
            yield Label(f"Images (max {settings.max_product_images}, first is the cover)")
            yield ListView(id="list-prod-images")
            with Horizontal(id="hort-prod-upload"):
                yield Input(placeholder="/path/to/photo.jpg", id="input-image-path")
                yield Button("Upload", id="btn-upload")
                yield Button("Remove selected", id="btn-remove-image")
            with Horizontal():
                yield Button("Cancel", id="btn-cancel")
                yield Button("Save", id="btn-save", variant="success")

    @staticmethod
    def _options(names: List[str], selected) -> List[Tuple[str, str, bool]]:
        names = list(names)
        for extra in selected:
            if extra not in names:
                names.append(extra)
        return [(n, n, n in selected) for n in names]

    async def on_mount(self) -> None:
        await self._render_images()
        self.query_one("#input-prod-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    async def _render_images(self) -> None:
        images_list = self.query_one("#list-prod-images", ListView)
        await images_list.clear()
        await images_list.extend(
            [ListItem(Label(("[cover] " if i == 0 else "") + url)) for i, url in enumerate(self._images)]
        )
        self.query_one("#btn-upload").disabled = len(self._images) >= settings.max_product_images

    @on(Button.Pressed, "#btn-upload")
    async def handle_upload(self) -> None:
        path_input = self.query_one("#input-image-path", Input)
        try:
            self._images = catalog.upload_product_image(
                self._images, path_input.value.strip(), self._bucket
            )
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        path_input.value = ""
        await self._render_images()

    @on(Button.Pressed, "#btn-remove-image")
    async def handle_remove_image(self) -> None:
        idx = self.query_one("#list-prod-images", ListView).index
        if idx is None or idx >= len(self._images):
            self.notify("Select an image first.", severity="warning")
            return
        self._images = self._images[:idx] + self._images[idx + 1 :]
        await self._render_images()

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        category = self.query_one("#select-prod-category", Select).value
        try:
            draft = catalog.build_product_draft(
                name=self.query_one("#input-prod-name", Input).value,
                description=self.query_one("#textarea-prod-desc", TextArea).text,
                price=self.query_one("#input-prod-price", Input).value,
                category=category if isinstance(category, str) else None,
                colors=self.query_one("#sel-prod-colors", SelectionList).selected,
                sizes=self.query_one("#sel-prod-sizes", SelectionList).selected,
                images=self._images,
                existing=self._product,
            )
            saved = await catalog.save_product(draft, self._product)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.dismiss(saved)
