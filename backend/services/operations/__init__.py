"""Operation handlers package.

This package provides operation handlers following the Strategy pattern,
allowing new analysis operations to be added without modifying existing code.
"""
from services.operations.registry import OperationRegistry, get_operation_registry
from services.operations.base import BaseOperationHandler

__all__ = [
    "OperationRegistry",
    "get_operation_registry",
    "BaseOperationHandler",
]
