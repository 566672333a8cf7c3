import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import ValidationError

from support_chat.core.interfaces.storage import IStorage
from support_chat.dependencies import get_storage
from support_chat.errors import NotFoundError
from support_chat.models.requests import FAQCreate, FAQUpdate
from support_chat.models.support import FAQ

router = APIRouter(prefix="/faqs", tags=["faqs"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[FAQ])
async def list_faqs(language: Optional[str] = None, storage: IStorage = Depends(get_storage)):
    """
    List FAQs. With a language, FAQs without a language are included too.
    """
    try:
        return await storage.get_faqs(language or None)
    except Exception as e:
        logger.error(f"Error fetching FAQs: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch FAQs",
        )


@router.post("", response_model=FAQ)
async def create_faq(data: FAQCreate, storage: IStorage = Depends(get_storage)):
    """
    Create an enabled FAQ
    """
    faq = await storage.create_faq(data)
    logger.info(f"Created FAQ {faq.id}")
    return faq


@router.patch("/{faq_id}", response_model=FAQ)
async def update_faq(faq_id: int, data: FAQUpdate, storage: IStorage = Depends(get_storage)):
    """
    Partially update a FAQ. Unknown ids are reported as invalid update data.
    """
    try:
        return await storage.update_faq(faq_id, data.model_dump(exclude_unset=True))
    except (NotFoundError, ValidationError) as e:
        logger.error(f"Error updating FAQ {faq_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid FAQ update data",
        )


@router.delete("/{faq_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_faq(faq_id: int, storage: IStorage = Depends(get_storage)):
    """
    Delete a FAQ; deleting an unknown id succeeds
    """
    await storage.delete_faq(faq_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
