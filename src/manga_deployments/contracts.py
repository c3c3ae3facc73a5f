"""Contract client: one bound handle per on-chain contract instance."""

import logging
from typing import Any, Optional, Sequence

from .abi import constructor_entry, find_function
from .chain import Chain
from .constants import DEFAULT_CONFIRMATION_TIMEOUT
from .exceptions import (
    CallRevertedError,
    ConfirmationTimeoutError,
    DeployArgumentError,
    DeployError,
    DeployRevertedError,
    DeployTimeoutError,
    RevertError,
    ValidationError,
)
from .types import ContractDescriptor, TransactionResult, TransactionStatus, TxOptions

logger = logging.getLogger(__name__)


class ContractClient:
    """
    Binds a contract descriptor, an address and the chain's signer.

    The bound address is fixed at construction.
    """

    def __init__(
        self,
        chain: Chain,
        descriptor: ContractDescriptor,
        address: str,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    ):
        self._chain = chain
        self._descriptor = descriptor
        self._address = address
        self._confirmation_timeout = confirmation_timeout

    def __repr__(self) -> str:
        return f"ContractClient({self._descriptor.name!r}, {self._address!r})"

    @property
    def address(self) -> str:
        return self._address

    @property
    def descriptor(self) -> ContractDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def signer(self) -> str:
        return self._chain.sender

    @classmethod
    def deploy(
        cls,
        chain: Chain,
        descriptor: ContractDescriptor,
        args: Sequence[Any],
        options: TxOptions,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    ) -> "ContractClient":
        """
        Create the contract and wait until the creation is confirmed.

        Args:
            chain: Chain capability to submit through
            descriptor: Contract to create; must carry bytecode
            args: Constructor arguments in declaration order
            options: Gas bounds forwarded to the chain
            confirmation_timeout: Seconds to wait for inclusion

        Returns:
            ContractClient bound to the created address

        Raises:
            DeployArgumentError: If bytecode is missing or arity mismatches
            DeployRevertedError: If creation is reverted
            DeployTimeoutError: If creation is not confirmed in time
            SubmissionError: If the node refuses the transaction
        """
        if not descriptor.bytecode:
            raise DeployArgumentError(f"No bytecode for contract '{descriptor.name}'")

        constructor = constructor_entry(descriptor.abi)
        expected = len(constructor.get("inputs", []))
        if len(args) != expected:
            raise DeployArgumentError(
                f"{descriptor.name} constructor takes {expected} arguments, got {len(args)}"
            )

        logger.info("Deploying %s", descriptor.name)
        try:
            pending = chain.submit_deploy(descriptor.bytecode, constructor, args, options)
        except RevertError as e:
            raise DeployRevertedError(
                f"Deployment of {descriptor.name} reverted: {e}", reason=e.reason
            ) from e

        try:
            result = chain.wait_for_confirmation(pending, confirmation_timeout)
        except ConfirmationTimeoutError as e:
            raise DeployTimeoutError(
                f"Deployment of {descriptor.name} not confirmed: {e}", tx_hash=pending.hash
            ) from e

        if result.status is TransactionStatus.FAILED:
            raise DeployRevertedError(
                f"Deployment of {descriptor.name} reverted in transaction {result.hash}",
                reason=result.revert_reason,
                tx_hash=result.hash,
            )
        if not result.contract_address:
            raise DeployError(f"Receipt for {result.hash} carries no contract address")

        logger.info("%s deployed to %s", descriptor.name, result.contract_address)
        return cls(chain, descriptor, result.contract_address, confirmation_timeout)

    def call(
        self,
        method: str,
        args: Sequence[Any],
        options: TxOptions,
        timeout: Optional[float] = None,
    ) -> TransactionResult:
        """
        Submit a state-changing call and wait for its confirmation.

        Raises:
            ValidationError: If arity does not match the method signature
            CallRevertedError: If the call is reverted (reason when available)
            ConfirmationTimeoutError: If the call is not confirmed in time
            InsufficientFundsError, NonceError, SubmissionError: If the node
                refuses the transaction
        """
        entry = self._method(method, args)
        pending = self._chain.submit_call(self._address, entry, args, options)
        result = self._chain.wait_for_confirmation(
            pending, self._confirmation_timeout if timeout is None else timeout
        )
        if result.status is TransactionStatus.FAILED:
            reason = result.revert_reason
            raise CallRevertedError(
                f"{self.name}.{method} reverted: {reason or 'no reason given'}",
                reason=reason,
                tx_hash=result.hash,
            )
        return result

    def query(self, method: str, args: Sequence[Any] = ()) -> Any:
        """
        Read-only call against current chain state.

        Raises:
            QueryError: If the remote call fails
        """
        entry = self._method(method, args)
        return self._chain.query(self._address, entry, args)

    def _method(self, method: str, args: Sequence[Any]) -> dict:
        entry = find_function(self._descriptor.abi, method, len(args))
        expected = len(entry.get("inputs", []))
        if len(args) != expected:
            raise ValidationError(
                f"{self.name}.{method} takes {expected} arguments, got {len(args)}"
            )
        return entry
