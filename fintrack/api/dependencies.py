"""
FastAPI dependencies: flow lookup, correlation ids and the current user.
"""

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from fintrack.audit import create_correlation_id
from fintrack.models.ledger import User
from fintrack.orchestrator import AccessFlow, DashboardFlow, LedgerFlow
from fintrack.services.auth import AuthenticationError
from fintrack.services.storage import StorageError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


def get_access_flow(request: Request) -> AccessFlow:
    return request.app.state.access_flow


def get_ledger_flow(request: Request) -> LedgerFlow:
    return request.app.state.ledger_flow


def get_dashboard_flow(request: Request) -> DashboardFlow:
    return request.app.state.dashboard_flow


def get_correlation_id() -> UUID:
    return create_correlation_id()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    access_flow: AccessFlow = Depends(get_access_flow),
) -> User:
    try:
        return await access_flow.resolve_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching user",
        )
