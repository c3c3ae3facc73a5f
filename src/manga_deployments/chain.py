"""Chain and key store capabilities consumed by the orchestration layer."""

from typing import Any, Dict, Protocol, Sequence

from .types import NetworkIdentity, TransactionResult, TxOptions


class KeyStore(Protocol):
    """Holds a credential and signs outgoing transactions."""

    @property
    def address(self) -> str: ...

    def sign_transaction(self, transaction: Dict[str, Any]) -> bytes: ...


class Chain(Protocol):
    """
    Network capability: submission, reads and confirmation waits.

    ``submit_*`` return a PENDING TransactionResult as soon as the node
    accepts the transaction; ``wait_for_confirmation`` resolves it in place.
    """

    @property
    def sender(self) -> str: ...

    def submit_deploy(
        self,
        bytecode: str,
        constructor: Dict[str, Any],
        args: Sequence[Any],
        options: TxOptions,
    ) -> TransactionResult: ...

    def submit_call(
        self,
        address: str,
        method: Dict[str, Any],
        args: Sequence[Any],
        options: TxOptions,
    ) -> TransactionResult: ...

    def query(self, address: str, method: Dict[str, Any], args: Sequence[Any]) -> Any: ...

    def wait_for_confirmation(
        self, result: TransactionResult, timeout: float
    ) -> TransactionResult: ...

    def get_network_identity(self) -> NetworkIdentity: ...

    def get_balance(self, address: str) -> int: ...
