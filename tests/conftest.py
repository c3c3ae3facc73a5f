"""Shared pytest fixtures for manga-deployments tests."""

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest
from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address

from manga_deployments.abi import event_topic, load_descriptor
from manga_deployments.config import ActionConfig, DeploymentConfig
from manga_deployments.exceptions import ConfirmationTimeoutError, QueryError
from manga_deployments.types import (
    ContractDescriptor,
    NetworkIdentity,
    RawLog,
    TransactionResult,
    TxOptions,
)

DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PLATFORM = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
CREATOR = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
INVESTOR = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"
PAYMENT_TOKEN = "0x0000000000000000000000000000000000001010"
# Well-known local development key (Anvil account 0)
DEV_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


class FakeChain:
    """
    In-memory Chain capability modelling the hub/asset contract pair.

    Contract state lives in per-address storage dicts; constructors and
    state-changing methods are plain Python handlers. Failures are injected
    per method name (or "deploy:<contract>") through the dicts below.
    """

    def __init__(self, sender: str = DEPLOYER, balance: int = 10**18, chain_id: int = 31337):
        self._sender = sender
        self.balance = balance
        self.network = NetworkIdentity(name="anvil", chain_id=chain_id)
        self.contracts: Dict[str, Dict[str, Any]] = {}
        self.submissions: List[Dict[str, Any]] = []
        self.queries: List[str] = []

        # Injection points
        self.submit_errors: Dict[str, Exception] = {}
        self.reverts: Dict[str, Optional[str]] = {}
        self.timeouts: set = set()
        self.query_results: Dict[str, Any] = {}
        self.emitters: Dict[str, Callable[[str, Sequence[Any], str], List[RawLog]]] = {}

        self.constructors: Dict[str, Callable[[Sequence[Any]], Dict[str, Any]]] = {
            "MonthlyDataUploader": lambda args: {
                "platformAddress": args[0],
                "mangaNFTContract": args[1],
            },
            "MangaNFT": lambda args: {
                "platformAddress": args[1],
                "monthlyDataUploader": args[3],
            },
        }
        self.handlers: Dict[str, Callable[[Dict[str, Any], Sequence[Any]], None]] = {
            "updateMangaNFTContract": lambda storage, args: storage.update(
                mangaNFTContract=args[0]
            ),
        }

        self._bytecodes: Dict[str, str] = {}
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._addresses = itertools.count(0xA1)
        self._hashes = itertools.count(1)
        self._block = 100

    @property
    def sender(self) -> str:
        return self._sender

    def register_bytecode(self, descriptor: ContractDescriptor) -> None:
        self._bytecodes[descriptor.bytecode] = descriptor.name

    def _next_hash(self) -> str:
        return "0x" + f"{next(self._hashes):064x}"

    def submit_deploy(self, bytecode, constructor, args, options: TxOptions) -> TransactionResult:
        name = self._bytecodes.get(bytecode, bytecode)
        key = f"deploy:{name}"
        if key in self.submit_errors:
            raise self.submit_errors[key]
        tx_hash = self._next_hash()
        self._pending[tx_hash] = {"kind": "deploy", "name": name, "args": list(args)}
        self.submissions.append({"kind": "deploy", "name": name, "args": list(args), "options": options})
        return TransactionResult(hash=tx_hash)

    def submit_call(self, address, method, args, options: TxOptions) -> TransactionResult:
        name = method["name"]
        if name in self.submit_errors:
            raise self.submit_errors[name]
        tx_hash = self._next_hash()
        self._pending[tx_hash] = {"kind": "call", "name": name, "address": address, "args": list(args)}
        self.submissions.append(
            {"kind": "call", "name": name, "address": address, "args": list(args), "options": options}
        )
        return TransactionResult(hash=tx_hash)

    def wait_for_confirmation(self, result: TransactionResult, timeout: float) -> TransactionResult:
        pending = self._pending[result.hash]
        key = pending["name"] if pending["kind"] == "call" else f"deploy:{pending['name']}"
        if key in self.timeouts:
            raise ConfirmationTimeoutError(f"{result.hash} not confirmed", tx_hash=result.hash)

        self._block += 1
        if key in self.reverts:
            result.resolve(False, self._block, [], revert_reason=self.reverts[key])
            return result

        if pending["kind"] == "deploy":
            address = to_checksum_address(f"0x{next(self._addresses):040x}")
            storage = self.constructors.get(pending["name"], lambda args: {})(pending["args"])
            self.contracts[address] = {"name": pending["name"], "args": pending["args"], "storage": storage}
            result.resolve(True, self._block, [], contract_address=address)
            return result

        storage = self.contracts[pending["address"]]["storage"]
        handler = self.handlers.get(pending["name"])
        if handler is not None:
            handler(storage, pending["args"])
        emitter = self.emitters.get(pending["name"])
        logs = emitter(pending["address"], pending["args"], result.hash) if emitter else []
        result.resolve(True, self._block, logs)
        return result

    def query(self, address, method, args):
        name = method["name"]
        self.queries.append(name)
        if name in self.query_results:
            value = self.query_results[name]
            if isinstance(value, Exception):
                raise value
            return value(*args) if callable(value) else value
        storage = self.contracts.get(address, {}).get("storage", {})
        if name not in storage:
            raise QueryError(f"Query {name} on {address} failed: execution reverted")
        return storage[name]

    def get_network_identity(self) -> NetworkIdentity:
        return self.network

    def get_balance(self, address: str) -> int:
        return self.balance


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def artifacts_dir(fixtures_dir: Path) -> Path:
    """Return the Foundry-style build output used by the tests."""
    return fixtures_dir / "out"


@pytest.fixture
def hub_descriptor(artifacts_dir: Path) -> ContractDescriptor:
    return load_descriptor(artifacts_dir, "MonthlyDataUploader")


@pytest.fixture
def asset_descriptor(artifacts_dir: Path) -> ContractDescriptor:
    return load_descriptor(artifacts_dir, "MangaNFT")


@pytest.fixture
def fake_chain(hub_descriptor: ContractDescriptor, asset_descriptor: ContractDescriptor) -> FakeChain:
    chain = FakeChain()
    chain.register_bytecode(hub_descriptor)
    chain.register_bytecode(asset_descriptor)
    return chain


@pytest.fixture
def deployment_config(tmp_path: Path, artifacts_dir: Path) -> DeploymentConfig:
    return DeploymentConfig(
        rpc_url="http://test-rpc.example.com",
        private_key=DEV_PRIVATE_KEY,
        platform_address=PLATFORM,
        payment_token=PAYMENT_TOKEN,
        base_uri="https://api.manga.com/metadata/",
        artifacts_dir=artifacts_dir,
        deployments_dir=tmp_path / "deployments",
    )


@pytest.fixture
def action_config(artifacts_dir: Path) -> ActionConfig:
    return ActionConfig(
        rpc_url="http://test-rpc.example.com",
        private_key=DEV_PRIVATE_KEY,
        artifacts_dir=artifacts_dir,
    )


@pytest.fixture
def tx_options() -> TxOptions:
    return TxOptions(gas_limit=1_000_000, gas_price_wei=20 * 10**9)


@pytest.fixture
def make_log() -> Callable[..., RawLog]:
    """Build a receipt log for an ABI event from named field values."""

    def _make_log(
        descriptor: ContractDescriptor,
        event_name: str,
        values: Dict[str, Any],
        log_index: int,
        address: str,
        tx_hash: str = "0x" + "ab" * 32,
    ) -> RawLog:
        entry = next(
            item
            for item in descriptor.abi
            if item.get("type") == "event" and item["name"] == event_name
        )
        topics = [event_topic(entry)]
        plain_types, plain_values = [], []
        for param in entry["inputs"]:
            if param["indexed"]:
                topics.append(abi_encode([param["type"]], [values[param["name"]]]))
            else:
                plain_types.append(param["type"])
                plain_values.append(values[param["name"]])
        return RawLog(
            address=address,
            topics=topics,
            data=abi_encode(plain_types, plain_values),
            log_index=log_index,
            transaction_hash=tx_hash,
        )

    return _make_log
