"""Shared FastAPI dependencies: stores and gateways built at startup."""

from fastapi import Request

from creditsync.gateways.base import GatewayRegistry
from creditsync.stores.base import TransactionLedger, UserDirectory


def get_directory(request: Request) -> UserDirectory:
    return request.app.state.directory


def get_ledger(request: Request) -> TransactionLedger:
    return request.app.state.ledger


def get_gateways(request: Request) -> GatewayRegistry:
    return request.app.state.gateways
