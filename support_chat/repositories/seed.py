import logging

from support_chat.core.interfaces.storage import IStorage
from support_chat.models.requests import FAQCreate
from support_chat.models.support import CrmDataCreate

logger = logging.getLogger(__name__)

DEMO_CRM_RECORDS = [
    CrmDataCreate(
        customer_id="CUST001",
        name="John Doe",
        email="john@example.com",
        details={
            "plan": "Premium",
            "signupDate": "2024-01-15",
            "lastPurchase": "2024-03-20",
        },
        preferred_language="en",
    ),
]

DEMO_FAQS = [
    FAQCreate(
        question="How do I reset my password?",
        answer=(
            "You can reset your password by clicking the 'Forgot Password' link on the "
            "login page and following the instructions sent to your email."
        ),
        language="en",
        category="account",
    ),
    FAQCreate(
        question="What payment methods do you accept?",
        answer=(
            "We accept all major credit cards (Visa, MasterCard, American Express), "
            "PayPal, and bank transfers."
        ),
        language="en",
        category="billing",
    ),
]


async def seed_demo_data(storage: IStorage) -> None:
    """Load the demo customer and FAQs used by the chat page."""
    for record in DEMO_CRM_RECORDS:
        await storage.create_crm_data(record)
    for faq in DEMO_FAQS:
        await storage.create_faq(faq)
    logger.info(f"Seeded {len(DEMO_CRM_RECORDS)} CRM records and {len(DEMO_FAQS)} FAQs")
