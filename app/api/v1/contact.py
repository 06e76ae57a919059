import logging

from fastapi import APIRouter, Depends

from app.core.errors import ServerError
from app.schemas.common import MessageResponse
from app.schemas.contact import SupportMessage
from app.services.mailer import SendGridMailer, get_mailer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("/support", response_model=MessageResponse)
async def contact_support(
    payload: SupportMessage,
    mailer: SendGridMailer = Depends(get_mailer),
):
    # Unlike reset emails, delivering this message is the whole point of the call
    result = await mailer.send_contact(payload.name, payload.email, payload.subject, payload.message)
    if not result.ok:
        logger.error("Support message from %s not delivered: %s", payload.email, result.error)
        raise ServerError("Error sending message.")
    return MessageResponse(msg="Message sent successfully!")
