"""History endpoints: list, open and clear past scans."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from vitalscope.factory import ServiceFactory
from vitalscope.adapters.rest.dependencies import get_factory
from vitalscope.adapters.rest.schemas import HistoryEntryOut, HistoryItemOut, history_item

router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=list[HistoryItemOut])
async def list_history(factory: ServiceFactory = Depends(get_factory)):
    return [history_item(e) for e in factory.history_store.entries]


@router.get("/{entry_id}", response_model=HistoryEntryOut)
async def get_history_entry(entry_id: str, factory: ServiceFactory = Depends(get_factory)):
    entry = factory.history_store.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="History entry not found.")
    return HistoryEntryOut.from_domain(entry)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_history(factory: ServiceFactory = Depends(get_factory)):
    await factory.history_store.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
