"""Persistence gateway: contract and SQL implementation."""
from learnhub.gateway.base import PersistenceGateway
from learnhub.gateway.sql import SqlGateway

__all__ = ["PersistenceGateway", "SqlGateway"]
