"""Custom exception classes for manga-deployments library."""

from typing import Any, Dict, List, Optional

from eth_abi import decode as abi_decode
from eth_utils import to_bytes

from .constants import ERROR_STRING_SELECTOR, PANIC_SELECTOR


class OrchestrationError(Exception):
    """Base exception for orchestration-related errors."""

    pass


class ValidationError(OrchestrationError, ValueError):
    """Raised when user input or configuration is malformed."""

    pass


class MethodNotFoundError(OrchestrationError, ValueError):
    """Raised when requested method is not found in contract ABI."""

    pass


class EventNotFoundError(OrchestrationError, ValueError):
    """Raised when requested event is not found in contract ABI."""

    pass


class DefectiveArtifactError(OrchestrationError, ValueError):
    """Raised when a compiled contract artifact is missing its ABI."""

    pass


class NotFoundError(OrchestrationError, FileNotFoundError):
    """Raised when a stored artifact or deployment record is not found."""

    pass


class StoreError(OrchestrationError):
    """Raised when a deployment record cannot be written or read back."""

    pass


class ChainUnavailableError(OrchestrationError):
    """Raised when the RPC endpoint cannot be reached or answers with a bad status."""

    pass


class RpcError(OrchestrationError):
    """Raised when the node answers a JSON-RPC request with an error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class SubmissionError(OrchestrationError):
    """Raised when the node refuses to accept a transaction."""

    pass


class InsufficientFundsError(SubmissionError):
    """Raised when the submitting account cannot pay for the transaction."""

    pass


class NonceError(SubmissionError):
    """Raised when the submitting account's nonce conflicts with the node's view."""

    pass


class RevertError(OrchestrationError):
    """Raised when a contract precondition rejects a transaction."""

    def __init__(self, message: str, reason: Optional[str] = None, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.tx_hash = tx_hash


class CallRevertedError(RevertError):
    """Raised when a state-changing call is reverted."""

    pass


class ConfirmationTimeoutError(OrchestrationError, TimeoutError):
    """
    Raised when confirmation of a submitted transaction is not observed in time.

    The transaction may still be included later; its outcome is unknown.
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class DeployError(OrchestrationError):
    """Base exception for contract-creation failures."""

    pass


class DeployArgumentError(DeployError, ValidationError):
    """Raised when constructor arguments do not match the constructor signature."""

    pass


class DeployRevertedError(DeployError, RevertError):
    """Raised when a contract-creation transaction is reverted."""

    pass


class DeployTimeoutError(DeployError, ConfirmationTimeoutError):
    """Raised when a contract-creation transaction is not confirmed in time."""

    pass


class QueryError(OrchestrationError):
    """Raised when a read-only call fails."""

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class PartialQueryError(QueryError):
    """Records a failed optional metric; never raised out of the stats layer."""

    def __init__(self, metric: str, cause: Exception):
        super().__init__(f"Metric '{metric}' unavailable: {cause}")
        self.metric = metric
        self.cause = cause


class VerificationError(OrchestrationError):
    """Raised when deployed contracts do not reference each other as expected."""

    def __init__(
        self,
        message: str,
        mismatches: Optional[List[str]] = None,
        deployed: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.mismatches = mismatches or []
        self.deployed = deployed or {}


class DeploymentStepError(OrchestrationError):
    """
    Raised when a deployment step fails.

    Contracts deployed by earlier steps stay on chain; ``deployed`` lists them
    for manual remediation. The underlying error is chained as ``__cause__``.
    """

    def __init__(
        self,
        step: int,
        contract: str,
        cause: Exception,
        deployed: Optional[Dict[str, str]] = None,
    ):
        super().__init__(f"Deployment step {step} ({contract}) failed: {cause}")
        self.step = step
        self.contract = contract
        self.cause = cause
        self.deployed = deployed or {}


def decode_revert_reason(data: Any) -> Optional[str]:
    """
    Decode revert return data into a human-readable reason.

    Args:
        data: Hex string or bytes returned by the node alongside a revert

    Returns:
        The Error(string) message, a panic description, or None if the data
        carries no recognizable reason
    """
    if not data or not isinstance(data, (str, bytes)):
        return None
    try:
        raw = to_bytes(hexstr=data) if isinstance(data, str) else bytes(data)
    except ValueError:
        return None

    selector, payload = raw[:4], raw[4:]
    try:
        if selector == ERROR_STRING_SELECTOR:
            return abi_decode(["string"], payload)[0]
        if selector == PANIC_SELECTOR:
            code = abi_decode(["uint256"], payload)[0]
            return f"panic code {hex(code)}"
    except Exception:  # malformed payload, reason stays unknown
        return None
    return None


def classify_rpc_error(error: RpcError, tx_hash: Optional[str] = None) -> OrchestrationError:
    """
    Map a JSON-RPC error raised during submission onto the error taxonomy.

    Args:
        error: Error object returned by the node
        tx_hash: Hash of the transaction, when already known

    Returns:
        InsufficientFundsError, NonceError, CallRevertedError or SubmissionError
    """
    message = str(error)
    lowered = message.lower()

    if "insufficient funds" in lowered:
        return InsufficientFundsError(message)
    if "nonce" in lowered:
        return NonceError(message)
    if "revert" in lowered:
        reason = decode_revert_reason(error.data)
        if reason is None and "reverted:" in lowered:
            start = lowered.index("reverted:") + len("reverted:")
            reason = message[start:].strip() or None
        return CallRevertedError(message, reason=reason, tx_hash=tx_hash)
    return SubmissionError(message)
