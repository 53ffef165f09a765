"""Payment route: x402 settlement for approved jobs.

Flow:
1. Poster approves the job, then the paying agent calls POST /api/pay.
2. Without a payment header the response is 402 with the payment
   requirements in the ``PAYMENT-REQUIRED`` header and the body.
3. The agent signs the payment and retries with ``PAYMENT-SIGNATURE``
   (or ``X-PAYMENT``).
4. The facilitator verifies and settles; the job becomes 'paid' and the
   worker's reputation goes up.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from perkyjobs.commerce.payments.settlement import PaymentRequired
from perkyjobs.commerce.payments.x402 import decode_envelope

from ..database import Settlement
from ..logging_config import get_logger
from ..models import PaymentRequest, PaymentResponse
from ..rate_limit import limiter

logger = get_logger("api.pay")
router = APIRouter(prefix="/api/pay", tags=["payments"])

PAYMENT_HEADERS = ("payment-signature", "x-payment")


def _payment_header(request: Request) -> str | None:
    for name in PAYMENT_HEADERS:
        value = request.headers.get(name)
        if value:
            return value
    return None


@router.post(
    "",
    response_model=PaymentResponse,
    responses={status.HTTP_402_PAYMENT_REQUIRED: {"description": "Payment required or rejected"}},
)
@limiter.limit("10/minute")
def pay_for_job(request: Request, body: PaymentRequest, settlement: Settlement):
    """Demand or settle payment for an approved job."""
    envelope = decode_envelope(_payment_header(request))
    logger.info(f"POST /api/pay | job={body.job_id} | envelope={envelope is not None}")

    result = settlement.request_payment(body.job_id, envelope, network=body.network)

    if isinstance(result, PaymentRequired):
        return JSONResponse(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            content={
                "error": "Payment Required",
                "message": "Include PAYMENT-SIGNATURE header",
                **result.challenge,
            },
            headers={"PAYMENT-REQUIRED": result.header},
        )

    return PaymentResponse.model_validate(result.to_dict())
