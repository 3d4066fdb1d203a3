"""
API v1 routes.

Defines REST endpoints for the action-link flow: opening a link, submitting
a new password, continuing after success, and the send/resend/check operations
for accounts still waiting on email verification.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import (
    get_flow_registry,
    get_optional_session,
    get_resend_controller,
)
from src.api.flows import FlowRecord, FlowRegistry
from src.api.models import (
    CreateFlowRequest,
    ErrorResponse,
    FlowResponse,
    PasswordResetRequest,
    ResendRequest,
    ResendResponse,
    VerificationCheckResponse,
)
from src.domain.exceptions import (
    EmailNotVerified,
    FlowStateError,
    GatewayError,
    NoPendingUser,
    ResendFailed,
)
from src.domain.links import parse_action_link
from src.domain.resend import ResendController
from src.domain.session import Session

router = APIRouter(tags=["v1"])


def _flow_response(record: FlowRecord) -> FlowResponse:
    flow = record.flow
    request = record.request
    return FlowResponse(
        flow_id=record.flow_id,
        mode=flow.mode,
        status=flow.status,
        email=request.email if request else "",
        display_name=request.display_name if request else "",
        message=flow.message,
        form_error=flow.form_error,
        redirect_to=record.navigator.target,
        redirect_in_seconds=flow.scheduler.remaining_seconds,
    )


def _get_record(registry: FlowRegistry, flow_id: str) -> FlowRecord:
    try:
        return registry.get(flow_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flow not found",
        ) from None


@router.post(
    "/flows",
    response_model=FlowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open an action link",
    description="Parse the inbound link's query string and process it once. "
    "Verification links are applied immediately; reset links wait for a new password.",
)
async def create_flow(
    request_data: CreateFlowRequest,
    registry: FlowRegistry = Depends(get_flow_registry),
    session: Session | None = Depends(get_optional_session),
) -> FlowResponse:
    record = registry.create(session)
    record.request = parse_action_link(request_data.query)
    await record.flow.process(record.request, session)
    return _flow_response(record)


@router.get(
    "/flows/{flow_id}",
    response_model=FlowResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown flow"}},
    summary="Get flow status",
)
async def get_flow(
    flow_id: str,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> FlowResponse:
    return _flow_response(_get_record(registry, flow_id))


@router.post(
    "/flows/{flow_id}/process",
    response_model=FlowResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown flow"}},
    summary="Re-trigger link processing",
    description="Safe to call repeatedly: a link is processed at most once per flow.",
)
async def process_flow(
    flow_id: str,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> FlowResponse:
    record = _get_record(registry, flow_id)
    if record.request is not None:
        await record.flow.process(record.request, record.session)
    return _flow_response(record)


@router.post(
    "/flows/{flow_id}/password-reset",
    response_model=FlowResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Unknown flow"},
        409: {"model": ErrorResponse, "description": "Flow not waiting for a password"},
    },
    summary="Submit a new password",
    description="Validation and provider failures are reported in form_error; "
    "the flow stays pending so the user can try again.",
)
async def submit_password_reset(
    flow_id: str,
    request_data: PasswordResetRequest,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> FlowResponse:
    record = _get_record(registry, flow_id)
    try:
        await record.reset.submit(request_data.new_password, request_data.confirm_password)
    except FlowStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from None
    return _flow_response(record)


@router.post(
    "/flows/{flow_id}/continue",
    response_model=FlowResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown flow"}},
    summary="Continue now instead of waiting for the redirect",
)
async def continue_flow(
    flow_id: str,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> FlowResponse:
    record = _get_record(registry, flow_id)
    record.flow.continue_now()
    return _flow_response(record)


@router.delete(
    "/flows/{flow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Unknown flow"}},
    summary="Close a flow",
)
async def delete_flow(
    flow_id: str,
    registry: FlowRegistry = Depends(get_flow_registry),
) -> Response:
    try:
        registry.remove(flow_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flow not found",
        ) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _apply_display_name(controller: ResendController, display_name: str) -> None:
    user = controller.session.pending_user
    if user is not None and display_name:
        user.display_name = display_name


@router.post(
    "/verification/send",
    response_model=ResendResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        409: {"model": ErrorResponse, "description": "Email already verified"},
        502: {"model": ErrorResponse, "description": "Email could not be sent"},
    },
    summary="Send the first verification email",
    description="Called right after account creation. Records the account as "
    "unverified; does not count as a resend.",
)
async def send_verification(
    request_data: ResendRequest,
    controller: ResendController = Depends(get_resend_controller),
) -> ResendResponse:
    _apply_display_name(controller, request_data.display_name)
    try:
        await controller.send_initial()
    except NoPendingUser:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already verified",
        ) from None
    except ResendFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send verification email. Please try again.",
        ) from None
    return ResendResponse(
        message="Verification email sent! Please check your inbox.",
        email=controller.session.pending_user.email,
    )


@router.post(
    "/verification/resend",
    response_model=ResendResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        409: {"model": ErrorResponse, "description": "Email already verified"},
        502: {"model": ErrorResponse, "description": "Email could not be sent"},
    },
    summary="Resend the verification email",
)
async def resend_verification(
    request_data: ResendRequest,
    controller: ResendController = Depends(get_resend_controller),
) -> ResendResponse:
    _apply_display_name(controller, request_data.display_name)
    user = controller.session.pending_user
    try:
        await controller.resend()
    except NoPendingUser:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already verified",
        ) from None
    except ResendFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to resend verification email. Please try again.",
        ) from None
    return ResendResponse(
        message="Verification email sent! Please check your inbox.",
        email=user.email,
    )


@router.post(
    "/verification/check",
    response_model=VerificationCheckResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid session"},
        409: {"model": ErrorResponse, "description": "Email not verified yet"},
        502: {"model": ErrorResponse, "description": "Identity provider unavailable"},
    },
    summary="Confirm that the email has been verified",
)
async def check_verification(
    controller: ResendController = Depends(get_resend_controller),
) -> VerificationCheckResponse:
    email = controller.session.pending_user.email
    try:
        user = await controller.confirm_verified()
    except NoPendingUser:
        return VerificationCheckResponse(
            message="Email already verified", email=email, email_verified=True
        )
    except EmailNotVerified as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from None
    except GatewayError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to verify email. Please try again.",
        ) from None
    return VerificationCheckResponse(
        message="Email verified successfully", email=user.email, email_verified=True
    )
