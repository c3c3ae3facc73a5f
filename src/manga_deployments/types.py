"""Data types and dataclasses for manga-deployments library."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class ContractDescriptor:
    """Compiled contract: name, ABI and (optional) creation bytecode."""

    name: str
    abi: List[Dict[str, Any]]
    bytecode: Optional[str] = None


@dataclass(frozen=True)
class TxOptions:
    """Caller-supplied gas bounds forwarded unchanged to the chain."""

    gas_limit: int
    gas_price_wei: int
    value: int = 0


class TransactionStatus(Enum):
    """
    Lifecycle of a submitted transaction.

    PENDING is the only non-terminal state.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class RawLog:
    """A log entry exactly as it appears in a transaction receipt."""

    address: str
    topics: List[bytes]
    data: bytes
    log_index: int
    transaction_hash: str


@dataclass
class TransactionResult:
    """
    A submitted transaction.

    Created PENDING on submission and resolved once by the confirmation wait.
    """

    hash: str
    status: TransactionStatus = TransactionStatus.PENDING
    block_number: Optional[int] = None
    logs: List[RawLog] = field(default_factory=list)
    contract_address: Optional[str] = None
    revert_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not TransactionStatus.PENDING

    def resolve(
        self,
        succeeded: bool,
        block_number: int,
        logs: List[RawLog],
        contract_address: Optional[str] = None,
        revert_reason: Optional[str] = None,
    ) -> None:
        """
        Record the outcome observed in the receipt.

        Raises:
            RuntimeError: If the transaction was already resolved
        """
        if self.is_terminal:
            raise RuntimeError(f"Transaction {self.hash} already {self.status.value}")
        self.status = TransactionStatus.CONFIRMED if succeeded else TransactionStatus.FAILED
        self.block_number = block_number
        self.logs = list(logs)
        self.contract_address = contract_address
        self.revert_reason = revert_reason


@dataclass(frozen=True)
class DomainEvent:
    """A decoded event emitted by a known contract."""

    name: str
    fields: Dict[str, Any]  # ABI input order
    transaction_hash: str
    log_index: int

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]


@dataclass(frozen=True)
class UnmatchedLog:
    """A receipt log whose signature is not part of the decoder's ABI."""

    log_index: int
    topic: Optional[bytes]


@dataclass(frozen=True)
class NetworkIdentity:
    """Network name and chain id."""

    name: str
    chain_id: int


@dataclass(frozen=True)
class ContractEntry:
    """One deployed contract inside a deployment record."""

    name: str
    address: str
    constructor_args: List[Any]
    abi: List[Dict[str, Any]]


@dataclass(frozen=True)
class DeploymentRecord:
    """Outcome of one completed deployment run."""

    network: NetworkIdentity
    deployer: str
    timestamp: datetime
    contracts: List[ContractEntry]
    config: Dict[str, Any] = field(default_factory=dict)  # non-secret run settings

    def address_of(self, name: str) -> str:
        for entry in self.contracts:
            if entry.name == name:
                return entry.address
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network.name,
            "chainId": self.network.chain_id,
            "deployer": self.deployer,
            "deploymentTime": self.timestamp.isoformat(),
            "contracts": [
                {
                    "name": entry.name,
                    "address": entry.address,
                    "constructorArgs": list(entry.constructor_args),
                    "abi": entry.abi,
                }
                for entry in self.contracts
            ],
            "config": dict(self.config),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        return cls(
            network=NetworkIdentity(name=data["network"], chain_id=data["chainId"]),
            deployer=data["deployer"],
            timestamp=datetime.fromisoformat(data["deploymentTime"]),
            contracts=[
                ContractEntry(
                    name=entry["name"],
                    address=entry["address"],
                    constructor_args=list(entry["constructorArgs"]),
                    abi=entry["abi"],
                )
                for entry in data["contracts"]
            ],
            config=dict(data.get("config") or {}),
        )


@dataclass(frozen=True)
class Unavailable:
    """Marker for an optional metric whose query failed."""

    reason: str

    def __bool__(self) -> bool:
        return False


class NotApplicable:
    """Marker for a derived ratio whose denominator is zero."""

    _instance: Optional["NotApplicable"] = None

    def __new__(cls) -> "NotApplicable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __bool__(self) -> bool:
        return False


NOT_APPLICABLE = NotApplicable()

Ratio = Union[float, NotApplicable]


@dataclass(frozen=True)
class CreatorStats:
    """Composite statistics for a creator address."""

    subject: str
    total_published: int
    total_acquired: int
    current_held: int
    average_acquired_per_chapter: Ratio
    retention_rate: Ratio
    is_registered: Union[bool, Unavailable]
    roster_size: Union[int, Unavailable]
    in_roster: Union[bool, Unavailable]


@dataclass(frozen=True)
class InvestorStats:
    """Composite statistics for an investor address."""

    subject: str
    total_acquired: int
    current_held: int
    retention_rate: Ratio
    is_registered: Union[bool, Unavailable]
    roster_size: Union[int, Unavailable]
    in_roster: Union[bool, Unavailable]
    current_held_count: Union[int, Unavailable]
    period: int
    period_acquired: Union[int, Unavailable]


@dataclass(frozen=True)
class ChapterDraft:
    """Arguments of a chapter publication."""

    title_zh: str
    title_en: str
    title_jp: str
    description_zh: str
    description_en: str
    description_jp: str
    max_copies: int
    uri: str
    creator: str

    def as_args(self) -> List[Any]:
        return [
            self.title_zh,
            self.title_en,
            self.title_jp,
            self.description_zh,
            self.description_en,
            self.description_jp,
            self.max_copies,
            self.uri,
            self.creator,
        ]


@dataclass(frozen=True)
class ActionOutcome:
    """A confirmed action transaction and the events it emitted."""

    transaction: TransactionResult
    events: List[DomainEvent]
