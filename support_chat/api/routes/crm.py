import logging

from fastapi import APIRouter, Depends, HTTPException, status

from support_chat.core.interfaces.storage import IStorage
from support_chat.dependencies import get_storage
from support_chat.models.support import CrmData

router = APIRouter(prefix="/crm", tags=["crm"])
logger = logging.getLogger(__name__)


@router.get("/{customer_id}", response_model=CrmData)
async def get_crm_data(customer_id: str, storage: IStorage = Depends(get_storage)):
    """
    Get the CRM record of a customer
    """
    data = await storage.get_crm_data(customer_id)
    if not data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return data
