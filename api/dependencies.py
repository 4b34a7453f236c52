"""
API dependencies - authentication and service wiring
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentOrchestrator
from application.services.token_service import TokenService
from core.exceptions import UnauthorizedException
from core.settings import payment_settings
from infrastructure.external.payments import get_payment_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)


async def get_token(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> str:
    """Extract the bearer token"""
    if bearer_token and bearer_token.credentials:
        return bearer_token.credentials
    raise UnauthorizedException("Missing credentials")


def get_token_service() -> TokenService:
    return TokenService()


async def get_current_user_id(
    token: str = Depends(get_token),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Caller identity from a verified access token"""
    return tokens.verify_access_token(token)


def get_gateway() -> PaymentGateway:
    return get_payment_gateway(settings=payment_settings)


async def get_payment_orchestrator(
    gateway: PaymentGateway = Depends(get_gateway),
) -> PaymentOrchestrator:
    return PaymentOrchestrator(uow_factory=SQLAlchemyUnitOfWork, gateway=gateway, settings=payment_settings)
