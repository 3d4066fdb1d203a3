"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, Field

from src.domain.ports import ActionMode, VerificationStatus


class CreateFlowRequest(BaseModel):
    """Request model for opening an action link."""

    query: str = Field(
        ...,
        description="Query string of the inbound link, e.g. mode=verifyEmail&oobCode=...",
    )


class FlowResponse(BaseModel):
    """Current view of one flow instance."""

    flow_id: str
    mode: ActionMode | None = None
    status: VerificationStatus
    email: str = ""
    display_name: str = ""
    message: str = ""
    form_error: str | None = None
    redirect_to: str | None = None
    redirect_in_seconds: int = 0


class PasswordResetRequest(BaseModel):
    """Request model for submitting a new password."""

    new_password: str
    confirm_password: str


class ResendRequest(BaseModel):
    """Request model for resending the verification email."""

    display_name: str = Field("", description="Name to greet the user with on the landing page")


class ResendResponse(BaseModel):
    """Response model for a sent verification email."""

    message: str
    email: str


class VerificationCheckResponse(BaseModel):
    """Response model for a confirmed email verification."""

    message: str
    email: str
    email_verified: bool


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
