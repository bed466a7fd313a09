"""
Quota management module for anonymous, IP-keyed usage budgets.
Tracks remaining operations per identity on a rolling window and keeps an
append-only log of charged operations.
"""

from .models import QuotaConfig, QuotaInfo, OperationResult, UsageStats
from .manager import QuotaManager
from .store import QuotaStore
from .identity import resolve_client_ip, mask_identity

__all__ = [
    "QuotaConfig",
    "QuotaInfo",
    "OperationResult",
    "UsageStats",
    "QuotaManager",
    "QuotaStore",
    "resolve_client_ip",
    "mask_identity",
]
