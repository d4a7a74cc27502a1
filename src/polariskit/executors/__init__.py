"""
Executors for mutating the catalog service.
"""

from .base import BaseExecutor, ExecutionResult, OperationType
from .grant_executor import GrantExecutor, RevocationResult, RevocationStatus

__all__ = [
    'BaseExecutor',
    'ExecutionResult',
    'OperationType',
    'GrantExecutor',
    'RevocationResult',
    'RevocationStatus',
]
