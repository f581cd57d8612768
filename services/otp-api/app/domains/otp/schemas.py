from pydantic import BaseModel, Field, field_validator


# Fields are optional at the schema level so that a missing value is reported as
# a 400 by the service instead of a schema error. No length limits on phone/otp:
# an unknown phone or overlong code is an invalid OTP (401), not a bad request.
class OTPSendIn(BaseModel):
    phone: str | None = None
    email: str | None = Field(default=None, max_length=254)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str | None) -> str | None:
        if not v:
            return v
        # CR/LF would end up in the To: header of the confirmation mail.
        if any(ord(ch) < 32 or ord(ch) == 127 or ch.isspace() for ch in v):
            raise ValueError("email must not contain whitespace or control characters")
        local, sep, domain = v.rpartition("@")
        if not sep or not local or not domain:
            raise ValueError("email must look like user@domain")
        return v


class OTPSendOut(BaseModel):
    message: str
    dev_otp: str | None = None


class OTPVerifyIn(BaseModel):
    phone: str | None = None
    otp: str | None = None


class OTPVerifyOut(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
