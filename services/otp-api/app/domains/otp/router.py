import html

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import HTMLResponse

from app.core.deps import get_otp_service
from app.domains.otp.schemas import OTPSendIn, OTPSendOut, OTPVerifyIn, OTPVerifyOut
from app.domains.otp.service import EmailConfirmation, OtpService


router = APIRouter(prefix="/api")


def _confirmation_page(confirmation: EmailConfirmation) -> str:
    phone = html.escape(confirmation.phone)
    email = html.escape(confirmation.email)
    return f"""<!doctype html>
<html>
  <head><meta charset="utf-8"><title>Email confirmed</title></head>
  <body>
    <h1>Email confirmed</h1>
    <p>Phone: <strong>{phone}</strong></p>
    <p>Email: <strong>{email}</strong></p>
  </body>
</html>
"""


@router.post("/send-otp", response_model=OTPSendOut, response_model_exclude_none=True)
def send_otp(
    payload: OTPSendIn,
    background_tasks: BackgroundTasks,
    service: OtpService = Depends(get_otp_service),
) -> OTPSendOut:
    issued = service.issue(payload.phone, payload.email, dispatch=background_tasks.add_task)
    dev_otp = issued.code if service.settings.otp_dev_mode else None
    return OTPSendOut(message="OTP sent", dev_otp=dev_otp)


@router.post("/verify-otp", response_model=OTPVerifyOut)
def verify_otp(payload: OTPVerifyIn, service: OtpService = Depends(get_otp_service)) -> OTPVerifyOut:
    token = service.verify(payload.phone, payload.otp)
    return OTPVerifyOut(message="Verified", token=token)


@router.get("/confirm-email", response_class=HTMLResponse)
def confirm_email(token: str | None = None, service: OtpService = Depends(get_otp_service)) -> HTMLResponse:
    confirmation = service.confirm_email(token)
    return HTMLResponse(_confirmation_page(confirmation))
