import logging
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Optional

from bartab.api.deps import ensure_accepted, ensure_valid, get_actor_id, get_session
from bartab.schemas.actions import (
    AddCategory, AddProduct, ApplyHappyHour, BulkUpdateProducts, DeleteCategory, DeleteProduct,
    RemoveHappyHour, RestockLow, RestockProduct, UpdateCategory, UpdateProduct,
)
from bartab.schemas.inventory import (
    BulkUpdateRequest, CategoryPatchRequest, CategoryRequest, HappyHourRequest, ProductPatchRequest,
    ProductRequest, RestockRequest, StockSummaryResponse,
)
from bartab.schemas.response import SuccessResponse
from bartab.services import reports
from bartab.services.inventory_ledger import low_stock_products
from bartab.services.session import BarSession
from bartab.services.validation import validate_product

log = logging.getLogger("bartab.api.inventory")

router = APIRouter()


def _product_or_404(session: BarSession, product_id: str):
    product = session.state.find_product(product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


# ----------- Products -----------

@router.get("/products", response_model=SuccessResponse)
async def list_products(
    category_id: Optional[str] = None,
    available_only: bool = False,
    happy_hour_only: bool = False,
    session: BarSession = Depends(get_session),
):
    """Lists the catalog. happy_hour_only keeps products whose discount is in effect right now."""
    products = list(session.state.products)
    if category_id is not None:
        products = reports.products_by_category(products, category_id)
    if available_only:
        products = reports.available_products(products)
    if happy_hour_only:
        products = reports.happy_hour_products(products, hour=session.now().hour)
    return SuccessResponse(data=products)


@router.get("/products/low-stock", response_model=SuccessResponse)
async def list_low_stock_products(session: BarSession = Depends(get_session)):
    return SuccessResponse(data=low_stock_products(session.state.products))


@router.get("/products/{product_id}", response_model=SuccessResponse)
async def get_product(product_id: str, session: BarSession = Depends(get_session)):
    """Fetches a product together with how much of its stock open orders are holding."""
    product = _product_or_404(session, product_id)
    stock = StockSummaryResponse(
        product_id=product.id,
        stock=product.stock,
        committed=reports.committed_stock(session.state, product.id),
        low_stock=product.low_stock,
        is_low=product.is_low_stock,
    )
    return SuccessResponse(data={"product": product, "stock": stock})


@router.post("/products", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_product(
    item_data: ProductRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """
    Adds a product to the catalog. Invalid drafts are refused with every error found;
    clamped values and duplicate names are accepted and reported as warnings.
    """
    result = ensure_valid(validate_product(item_data.model_dump(), session.state.products))
    outcome = ensure_accepted(await session.dispatch(AddProduct(product=result.value), actor_id))
    product = outcome.state.products[0]
    log.info(f"Product '{product.name}' added by {actor_id}.")
    return SuccessResponse(data=product, notifications=outcome.notifications, warnings=result.warnings)


@router.patch("/products/{product_id}", response_model=SuccessResponse)
async def update_product(
    product_id: str,
    patch: ProductPatchRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Validates the product as it would look after the patch, then applies only the patched fields."""
    existing = _product_or_404(session, product_id)
    changes = patch.model_dump(exclude_unset=True)
    result = ensure_valid(validate_product({**existing.model_dump(), **changes}, session.state.products))
    cleaned = {key: result.value[key] for key in changes}

    outcome = ensure_accepted(await session.dispatch(UpdateProduct(product_id=product_id, patch=cleaned), actor_id))
    return SuccessResponse(
        data=outcome.state.find_product(product_id), notifications=outcome.notifications, warnings=result.warnings
    )


@router.delete("/products/{product_id}", response_model=SuccessResponse)
async def delete_product(
    product_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Refused with 409 while the product is on an open order."""
    outcome = ensure_accepted(await session.dispatch(DeleteProduct(product_id=product_id), actor_id))
    return SuccessResponse(data={"id": product_id}, notifications=outcome.notifications)


@router.post("/products/bulk-update", response_model=SuccessResponse)
async def bulk_update_products(
    payload: BulkUpdateRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    updates = payload.updates.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update.")
    action = BulkUpdateProducts(product_ids=payload.product_ids, updates=updates)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    targets = set(payload.product_ids)
    updated = [p for p in outcome.state.products if p.id in targets]
    return SuccessResponse(data=updated, notifications=outcome.notifications)


@router.post("/products/{product_id}/restock", response_model=SuccessResponse)
async def restock_product(
    product_id: str,
    payload: RestockRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    action = RestockProduct(product_id=product_id, quantity=payload.quantity)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    return SuccessResponse(data=outcome.state.find_product(product_id), notifications=outcome.notifications)


@router.post("/restock-low", response_model=SuccessResponse)
async def restock_low(session: BarSession = Depends(get_session), actor_id: str = Depends(get_actor_id)):
    """Every product at or below its threshold receives twice its threshold."""
    low_ids = {p.id for p in low_stock_products(session.state.products)}
    outcome = ensure_accepted(await session.dispatch(RestockLow(), actor_id))
    restocked = [p for p in outcome.state.products if p.id in low_ids]
    return SuccessResponse(data=restocked, notifications=outcome.notifications)


# ----------- Categories -----------

@router.get("/categories", response_model=SuccessResponse)
async def list_categories(session: BarSession = Depends(get_session)):
    return SuccessResponse(data=session.state.categories)


@router.post("/categories", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def add_category(
    payload: CategoryRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    if not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required.")
    action = AddCategory(name=payload.name, description=payload.description)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    # Categories are appended
    return SuccessResponse(data=outcome.state.categories[-1], notifications=outcome.notifications)


@router.patch("/categories/{category_id}", response_model=SuccessResponse)
async def update_category(
    category_id: str,
    payload: CategoryPatchRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    action = UpdateCategory(category_id=category_id, name=payload.name, description=payload.description)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    return SuccessResponse(data=outcome.state.find_category(category_id), notifications=outcome.notifications)


@router.delete("/categories/{category_id}", response_model=SuccessResponse)
async def delete_category(
    category_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    """Products of the category stay in the catalog without a category."""
    outcome = ensure_accepted(await session.dispatch(DeleteCategory(category_id=category_id), actor_id))
    return SuccessResponse(data={"id": category_id}, notifications=outcome.notifications)


@router.post("/categories/{category_id}/happy-hour", response_model=SuccessResponse)
async def apply_happy_hour(
    category_id: str,
    payload: HappyHourRequest,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    action = ApplyHappyHour(category_id=category_id, discount=payload.discount)
    outcome = ensure_accepted(await session.dispatch(action, actor_id))
    return SuccessResponse(
        data=reports.products_by_category(outcome.state.products, category_id),
        notifications=outcome.notifications,
    )


@router.delete("/categories/{category_id}/happy-hour", response_model=SuccessResponse)
async def remove_happy_hour(
    category_id: str,
    session: BarSession = Depends(get_session),
    actor_id: str = Depends(get_actor_id),
):
    outcome = ensure_accepted(await session.dispatch(RemoveHappyHour(category_id=category_id), actor_id))
    return SuccessResponse(
        data=reports.products_by_category(outcome.state.products, category_id),
        notifications=outcome.notifications,
    )
