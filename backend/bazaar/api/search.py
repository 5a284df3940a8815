from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from bazaar.api.deps import get_current_user_id, get_store
from bazaar.connectors.base import ListingStore
from bazaar.core.config import get_settings
from bazaar.core.local_storage import MemoryLocalStorage
from bazaar.schemas.listing import SearchHistoryOut, SearchSubmit
from bazaar.services.search_history import SearchHistoryTracker

router = APIRouter(prefix="/v1/marketplace/searches", tags=["search"])


@router.get("", response_model=SearchHistoryOut)
async def recent_searches(
    store: ListingStore = Depends(get_store),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> SearchHistoryOut:
    if not user_id:
        return SearchHistoryOut(searches=[])
    tracker = SearchHistoryTracker(
        store, MemoryLocalStorage(), user_id=user_id, max_length=get_settings().search_history_max
    )
    return SearchHistoryOut(searches=await tracker.load())


@router.post("", response_model=SearchHistoryOut)
async def submit_search(
    payload: SearchSubmit,
    background_tasks: BackgroundTasks,
    store: ListingStore = Depends(get_store),
    user_id: Optional[str] = Depends(get_current_user_id),
) -> SearchHistoryOut:
    tracker = SearchHistoryTracker(
        store, MemoryLocalStorage(), user_id=user_id, max_length=get_settings().search_history_max
    )
    await tracker.load()
    terms = tracker.record(payload.term)
    if terms is None:
        return SearchHistoryOut(searches=tracker.history.terms)
    background_tasks.add_task(tracker.persist, terms, payload.term, payload.radius_miles)
    return SearchHistoryOut(searches=terms)
