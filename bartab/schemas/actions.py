"""
Engine actions: a closed set of tagged records. The "kind" field is the tag and the
remaining fields are the payload. Parse untrusted input with ACTION_ADAPTER.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from bartab.models.state import BarState


class ActionKind(str, Enum):
    # Orders
    CREATE_ORDER = "create_order"
    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"
    FINALIZE_ORDER = "finalize_order"
    CANCEL_ORDER = "cancel_order"
    REOPEN_ORDER = "reopen_order"
    UPDATE_ORDER_NOTES = "update_order_notes"
    UPDATE_ITEM_NOTES = "update_item_notes"
    # Cross-order
    TRANSFER_ORDER = "transfer_order"
    TRANSFER_ITEMS = "transfer_items"
    SPLIT_ORDER = "split_order"
    # Catalog
    ADD_PRODUCT = "add_product"
    UPDATE_PRODUCT = "update_product"
    DELETE_PRODUCT = "delete_product"
    RESTOCK_LOW = "restock_low"
    RESTOCK_PRODUCT = "restock_product"
    BULK_UPDATE_PRODUCTS = "bulk_update_products"
    APPLY_HAPPY_HOUR = "apply_happy_hour"
    REMOVE_HAPPY_HOUR = "remove_happy_hour"
    ADD_CATEGORY = "add_category"
    UPDATE_CATEGORY = "update_category"
    DELETE_CATEGORY = "delete_category"
    # Internal bookkeeping, never audited
    HYDRATE = "hydrate"


INTERNAL_ACTION_KINDS = frozenset({ActionKind.HYDRATE.value})


class BaseAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    def payload(self) -> Dict[str, Any]:
        """JSON-safe echo of the action input, without the tag."""
        return self.model_dump(mode="json", exclude={"kind"})


class CreateOrder(BaseAction):
    kind: Literal["create_order"] = "create_order"
    name: str


class AddItem(BaseAction):
    kind: Literal["add_item"] = "add_item"
    order_id: str
    product_id: str
    notes: Optional[str] = None
    discount: int = Field(0, ge=0, le=100)


class RemoveItem(BaseAction):
    kind: Literal["remove_item"] = "remove_item"
    order_id: str
    item_id: str


class FinalizeOrder(BaseAction):
    kind: Literal["finalize_order"] = "finalize_order"
    order_id: str


class CancelOrder(BaseAction):
    kind: Literal["cancel_order"] = "cancel_order"
    order_id: str


class ReopenOrder(BaseAction):
    kind: Literal["reopen_order"] = "reopen_order"
    order_id: str


class UpdateOrderNotes(BaseAction):
    kind: Literal["update_order_notes"] = "update_order_notes"
    order_id: str
    notes: str = ""


class UpdateItemNotes(BaseAction):
    kind: Literal["update_item_notes"] = "update_item_notes"
    order_id: str
    item_id: str
    notes: str = ""


class TransferOrder(BaseAction):
    kind: Literal["transfer_order"] = "transfer_order"
    from_order_id: str
    to_order_id: str


class TransferItems(BaseAction):
    kind: Literal["transfer_items"] = "transfer_items"
    from_order_id: str
    to_order_id: str
    item_ids: List[str]


class SplitOrder(BaseAction):
    kind: Literal["split_order"] = "split_order"
    order_id: str
    item_ids: List[str]
    new_order_name: str


class AddProduct(BaseAction):
    kind: Literal["add_product"] = "add_product"
    product: Dict[str, Any]


class UpdateProduct(BaseAction):
    kind: Literal["update_product"] = "update_product"
    product_id: str
    patch: Dict[str, Any]


class DeleteProduct(BaseAction):
    kind: Literal["delete_product"] = "delete_product"
    product_id: str


class RestockLow(BaseAction):
    kind: Literal["restock_low"] = "restock_low"


class RestockProduct(BaseAction):
    kind: Literal["restock_product"] = "restock_product"
    product_id: str
    quantity: Any  # Sanitized by the ledger; garbage restocks nothing


class BulkUpdateProducts(BaseAction):
    kind: Literal["bulk_update_products"] = "bulk_update_products"
    product_ids: List[str]
    updates: Dict[str, Any]


class ApplyHappyHour(BaseAction):
    kind: Literal["apply_happy_hour"] = "apply_happy_hour"
    category_id: str
    discount: int = Field(..., ge=0, le=100)


class RemoveHappyHour(BaseAction):
    kind: Literal["remove_happy_hour"] = "remove_happy_hour"
    category_id: str


class AddCategory(BaseAction):
    kind: Literal["add_category"] = "add_category"
    name: str
    description: str = ""


class UpdateCategory(BaseAction):
    kind: Literal["update_category"] = "update_category"
    category_id: str
    name: Optional[str] = None
    description: Optional[str] = None


class DeleteCategory(BaseAction):
    kind: Literal["delete_category"] = "delete_category"
    category_id: str


class Hydrate(BaseAction):
    """Replaces the whole state, e.g. after loading a snapshot."""
    kind: Literal["hydrate"] = "hydrate"
    state: BarState


Action = Annotated[
    Union[
        CreateOrder, AddItem, RemoveItem, FinalizeOrder, CancelOrder, ReopenOrder,
        UpdateOrderNotes, UpdateItemNotes, TransferOrder, TransferItems, SplitOrder,
        AddProduct, UpdateProduct, DeleteProduct, RestockLow, RestockProduct,
        BulkUpdateProducts, ApplyHappyHour, RemoveHappyHour,
        AddCategory, UpdateCategory, DeleteCategory, Hydrate,
    ],
    Field(discriminator="kind"),
]

ACTION_ADAPTER = TypeAdapter(Action)
