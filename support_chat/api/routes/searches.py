import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from support_chat.config.settings import settings
from support_chat.core.interfaces.storage import IStorage
from support_chat.dependencies import get_storage
from support_chat.models.requests import SearchTrack
from support_chat.models.responses import PopularSearchResponse

router = APIRouter(prefix="/popular-searches", tags=["searches"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[PopularSearchResponse])
async def popular_searches(
        limit: int = Query(settings.store.POPULAR_SEARCH_DEFAULT_LIMIT, ge=0),
        storage: IStorage = Depends(get_storage)
):
    """
    Most frequent searches of the last day, highest count first
    """
    try:
        searches = await storage.get_popular_searches(limit)
        return [{"query": search.query, "count": search.count} for search in searches]
    except Exception as e:
        logger.error(f"Error fetching popular searches: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch popular searches",
        )


@router.post("", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def track_search(data: SearchTrack, storage: IStorage = Depends(get_storage)):
    """
    Record one occurrence of a search query
    """
    await storage.track_search(data.query)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
