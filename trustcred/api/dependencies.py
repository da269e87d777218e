"""Route dependencies: services come from the container on app.state."""

from __future__ import annotations

from fastapi import Request

from trustcred.services.container import ServiceContainer
from trustcred.services.ledger_reader import LedgerReader
from trustcred.services.verification_service import VerificationService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_verifier(request: Request) -> VerificationService:
    return get_container(request).verifier


def get_reader(request: Request) -> LedgerReader:
    return get_container(request).reader
