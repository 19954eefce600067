import logging
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from bartab.api.deps import ensure_accepted, get_session
from bartab.schemas.response import SuccessResponse
from bartab.services.session import BarSession

log = logging.getLogger("bartab.api.snapshots")

router = APIRouter()


class SnapshotRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Snapshot name, e.g. 'before-inventory-count'.")


@router.get("/", response_model=SuccessResponse)
async def list_snapshots(session: BarSession = Depends(get_session)):
    """Named snapshots, newest first. The live state is not listed."""
    return SuccessResponse(data=await session.list_snapshots())


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_snapshot(payload: SnapshotRequest, session: BarSession = Depends(get_session)):
    """Saves the current state under a name. An existing snapshot with that name is overwritten."""
    try:
        data = await session.create_snapshot(payload.name.strip())
        return SuccessResponse(data=data)
    except ValueError as e:
        log.error(f"Value error creating snapshot: {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{name}/restore", response_model=SuccessResponse)
async def restore_snapshot(name: str, session: BarSession = Depends(get_session)):
    """Replaces the whole live state with the snapshot. Not audited."""
    try:
        outcome = await session.restore_snapshot(name)
    except ValueError as e:
        log.error(f"Value error restoring snapshot: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    if outcome is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Snapshot not found")
    ensure_accepted(outcome)
    state = session.state
    return SuccessResponse(
        data={"name": name, "products": len(state.products), "orders": len(state.orders)},
        notifications=outcome.notifications,
    )


@router.delete("/{name}", response_model=SuccessResponse)
async def delete_snapshot(name: str, session: BarSession = Depends(get_session)):
    try:
        deleted = await session.delete_snapshot(name)
    except ValueError as e:
        log.error(f"Value error deleting snapshot: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Snapshot not found")
    return SuccessResponse(data={"name": name})
