"""
manga-deployments: deploy, wire and operate the MangaNFT / MonthlyDataUploader contract pair
"""

from importlib.metadata import PackageNotFoundError, version

from .contracts import ContractClient
from .events import EventDecoder
from .exceptions import (
    CallRevertedError,
    ConfirmationTimeoutError,
    DeployError,
    DeploymentStepError,
    InsufficientFundsError,
    NonceError,
    NotFoundError,
    OrchestrationError,
    PartialQueryError,
    QueryError,
    RevertError,
    StoreError,
    SubmissionError,
    ValidationError,
    VerificationError,
)
from .orchestrator import DeploymentOrchestrator, WiringPlan
from .stats import StatsAggregator, current_period
from .store import ArtifactStore
from .types import (
    NOT_APPLICABLE,
    ContractDescriptor,
    DeploymentRecord,
    DomainEvent,
    TransactionResult,
    Unavailable,
)

try:
    __version__ = version("manga-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentOrchestrator",
    "WiringPlan",
    "ContractClient",
    "EventDecoder",
    "StatsAggregator",
    "current_period",
    "ArtifactStore",
    "ContractDescriptor",
    "DeploymentRecord",
    "DomainEvent",
    "TransactionResult",
    "Unavailable",
    "NOT_APPLICABLE",
    "OrchestrationError",
    "ValidationError",
    "SubmissionError",
    "InsufficientFundsError",
    "NonceError",
    "RevertError",
    "CallRevertedError",
    "ConfirmationTimeoutError",
    "DeployError",
    "QueryError",
    "PartialQueryError",
    "VerificationError",
    "DeploymentStepError",
    "NotFoundError",
    "StoreError",
]
