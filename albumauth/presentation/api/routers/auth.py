from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from ....application.services.auth_service import AuthService
from ....core.dependencies import get_auth_service, get_session_store
from ....domain.models import Account, AuthState, Error, NewAccount, Session
from ....domain.validation import format_phone_number, validate_signup
from ....services.session_store import SessionStore
from ...api.dependencies import require_session
from ...api.schemas.auth import (
    AccountResponse,
    LoginRequest,
    OtpPayload,
    PhonePayload,
    ResetPasswordRequest,
    SessionResponse,
    SignupRequest,
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/signup")
async def signup(
    payload: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    result = validate_signup(
        payload.username,
        payload.email,
        payload.phone_number,
        payload.password,
        payload.confirm_password,
    )
    if not result:
        raise HTTPException(status_code=422, detail=result.error_message)
    account = NewAccount(
        username=payload.username,
        email=payload.email if payload.email.strip() else None,
        phone_number=payload.phone_number,
        password=payload.password,
    )
    return _outcome(await auth_service.register(account))


@router.post("/login")
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return _outcome(await auth_service.login(payload.username, payload.password))


@router.post("/logout")
async def logout(auth_service: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    return _outcome(await auth_service.logout())


@router.post("/phone")
async def check_phone_number(
    payload: PhonePayload,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return _outcome(await auth_service.check_phone_number(payload.phone_number))


@router.post("/otp")
async def verify_otp(
    payload: OtpPayload,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return _outcome(await auth_service.verify_otp(payload.phone_number, payload.otp))


@router.post("/password/reset")
async def reset_password(
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    state = await auth_service.reset_password(
        payload.username,
        payload.phone_number,
        payload.new_password,
        payload.confirm_password,
    )
    return _outcome(state)


@router.delete("/account")
async def delete_account(
    _: Session = Depends(require_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return _outcome(await auth_service.delete_current_account())


@router.get("/account", response_model=AccountResponse)
async def current_account(
    _: Session = Depends(require_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    account = await auth_service.get_current_account()
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account no longer exists")
    return _serialize_account(account)


@router.get("/accounts", response_model=List[AccountResponse])
async def list_accounts(auth_service: AuthService = Depends(get_auth_service)) -> List[AccountResponse]:
    return [_serialize_account(account) for account in await auth_service.list_accounts()]


@router.get("/session", response_model=SessionResponse)
def session_status(session_store: SessionStore = Depends(get_session_store)) -> SessionResponse:
    session = session_store.read()
    return SessionResponse(
        is_logged_in=session.is_logged_in,
        user_id=session.user_id,
        username=session.username,
        last_login=session.last_login,
    )


@router.get("/state")
def current_state(auth_service: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    return auth_service.state.to_dict()


@router.post("/state/reset")
def reset_state(auth_service: AuthService = Depends(get_auth_service)) -> Dict[str, Any]:
    return auth_service.reset_ui_state().to_dict()


def _outcome(state: AuthState) -> Dict[str, Any]:
    if isinstance(state, Error):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=state.message)
    return state.to_dict()


def _serialize_account(account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        username=account.username,
        email=account.email,
        phone_number=account.phone_number,
        phone_display=format_phone_number(account.phone_number),
        is_verified=account.is_verified,
        created_at=account.created_at,
    )
