from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from typing import Optional

from storefront.api.deps import get_db
from storefront.schemas import OrderRead, OrderResponse
from storefront.services.checkout import handle_payment_event
from storefront.services.payments import StripeGateway, get_payment_gateway
from storefront.services.processed_events import ProcessedEvents, get_processed_events

router = APIRouter()

@router.post("/webhook")
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
    processed: ProcessedEvents = Depends(get_processed_events),
):
    # signature is computed over the exact bytes, so the body is read raw
    payload = await request.body()
    order = await run_in_threadpool(handle_payment_event, db, payload, stripe_signature, gateway, processed)
    if order is None:
        return {"received": True}
    body = OrderResponse(order=OrderRead.model_validate(order))
    return JSONResponse(status_code=201, content=body.model_dump(mode="json"))
