"""FastAPI dependency injection helpers.

Every shared service lives on ``app.state`` and is built once in
``create_app``; tests swap them there.
"""
from __future__ import annotations

from typing import Annotated, AsyncIterator

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from messaging_service.application.dto.principal import Principal
from messaging_service.application.ports.auth import TokenVerifier
from messaging_service.application.ports.delivery import MessageDelivery
from messaging_service.application.uow import UnitOfWork

_bearer = HTTPBearer(description="Identity-service JWT")


async def get_uow(request: Request) -> AsyncIterator[UnitOfWork]:
    async with request.app.state.uow_factory() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


def get_delivery(request: Request) -> MessageDelivery:
    return request.app.state.fanout


DeliveryDep = Annotated[MessageDelivery, Depends(get_delivery)]


def get_verifier(request: Request) -> TokenVerifier:
    return request.app.state.verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer)],
    verifier: Annotated[TokenVerifier, Depends(get_verifier)],
) -> Principal:
    try:
        return await verifier.verify(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {exc}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
