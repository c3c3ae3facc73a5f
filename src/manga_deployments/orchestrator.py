"""Two-phase deployment of the hub/asset contract pair."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

from .chain import Chain
from .config import DeploymentConfig
from .constants import (
    ASSET_REFERENCE_GETTER,
    BIND_METHOD,
    HUB_REFERENCE_GETTER,
    ZERO_ADDRESS,
)
from .contracts import ContractClient
from .exceptions import (
    DeploymentStepError,
    InsufficientFundsError,
    OrchestrationError,
    VerificationError,
)
from .store import ArtifactStore
from .types import ContractDescriptor, ContractEntry, DeploymentRecord, NetworkIdentity

logger = logging.getLogger(__name__)


class Step(IntEnum):
    """Deployment steps, in the only order they may run."""

    DEPLOY_HUB = 1
    DEPLOY_ASSET = 2
    BIND = 3
    VERIFY = 4
    RECORD = 5


@dataclass(frozen=True)
class WiringPlan:
    """Names of the methods that connect the pair."""

    bind_method: str = BIND_METHOD
    hub_reference_getter: str = HUB_REFERENCE_GETTER
    asset_reference_getter: str = ASSET_REFERENCE_GETTER


def _same_address(left: Any, right: Any) -> bool:
    return isinstance(left, str) and isinstance(right, str) and left.lower() == right.lower()


class DeploymentOrchestrator:
    """
    Deploys the hub and asset contracts, whose constructors need each other's address.

    The hub is created with a zero placeholder, the asset with the hub's real
    address, then the hub is bound to the asset and both references are read
    back. Nothing is retried or rolled back: on-chain effects are final.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        chain: Chain,
        hub: ContractDescriptor,
        asset: ContractDescriptor,
        store: Optional[ArtifactStore] = None,
        plan: WiringPlan = WiringPlan(),
    ):
        self._config = config
        self._chain = chain
        self._hub_descriptor = hub
        self._asset_descriptor = asset
        self._store = store
        self._plan = plan
        self._started = False
        self.hub: Optional[ContractClient] = None
        self.asset: Optional[ContractClient] = None
        self.record: Optional[DeploymentRecord] = None
        self._network: Optional[NetworkIdentity] = None

    def hub_constructor_args(self) -> List[Any]:
        return [self._config.platform_address, ZERO_ADDRESS]

    def asset_constructor_args(self, hub_address: str) -> List[Any]:
        return [
            self._config.base_uri,
            self._config.platform_address,
            self._config.payment_token,
            hub_address,
        ]

    def deployed_addresses(self) -> Dict[str, str]:
        return {client.name: client.address for client in (self.hub, self.asset) if client}

    def preflight(self) -> NetworkIdentity:
        """
        Read network identity and deployer balance; no transaction is sent.

        Raises:
            InsufficientFundsError: If the deployer holds no funds
        """
        network = self._chain.get_network_identity()
        deployer = self._chain.sender
        balance = self._chain.get_balance(deployer)
        logger.info(
            "Deploying with account %s on %s (chain id %d), balance %d wei",
            deployer,
            network.name,
            network.chain_id,
            balance,
        )
        if balance <= 0:
            raise InsufficientFundsError(f"Deployer {deployer} has no funds")
        return network

    def run(self) -> DeploymentRecord:
        """
        Execute steps 1-5 once.

        Returns:
            The DeploymentRecord, already persisted when a store is configured

        Raises:
            DeploymentStepError: If a step fails; ``deployed`` lists contracts
                that are already on chain
            VerificationError: If the pair does not reference each other
            RuntimeError: If this orchestrator already ran
        """
        if self._started:
            raise RuntimeError("Deployment orchestrator instances are single-use")
        self._started = True

        self._network = self.preflight()

        for step in Step:
            try:
                self._run_step(step)
            except VerificationError:
                logger.error("Verification failed; deployed contracts: %s", self.deployed_addresses())
                raise
            except OrchestrationError as e:
                contract = self._contract_for(step)
                logger.error(
                    "Step %d (%s) failed: %s; deployed contracts: %s",
                    step,
                    contract,
                    e,
                    self.deployed_addresses(),
                )
                raise DeploymentStepError(int(step), contract, e, self.deployed_addresses()) from e

        assert self.record is not None
        logger.info("Deployment complete: %s", self.deployed_addresses())
        return self.record

    def _contract_for(self, step: Step) -> str:
        if step is Step.DEPLOY_ASSET:
            return self._asset_descriptor.name
        if step is Step.VERIFY:
            return f"{self._hub_descriptor.name}/{self._asset_descriptor.name}"
        return self._hub_descriptor.name

    def _run_step(self, step: Step) -> None:
        match step:
            case Step.DEPLOY_HUB:
                self._deploy_hub()
            case Step.DEPLOY_ASSET:
                self._deploy_asset()
            case Step.BIND:
                self._bind()
            case Step.VERIFY:
                self._verify()
            case Step.RECORD:
                self._record()

    def _deploy_hub(self) -> None:
        if self.hub is not None:
            return
        logger.info("Step 1: deploying %s with placeholder asset address", self._hub_descriptor.name)
        self.hub = ContractClient.deploy(
            self._chain,
            self._hub_descriptor,
            self.hub_constructor_args(),
            self._config.deploy_options,
            self._config.confirmation_timeout,
        )

    def _deploy_asset(self) -> None:
        if self.asset is not None:
            return
        assert self.hub is not None
        logger.info("Step 2: deploying %s bound to %s", self._asset_descriptor.name, self.hub.address)
        self.asset = ContractClient.deploy(
            self._chain,
            self._asset_descriptor,
            self.asset_constructor_args(self.hub.address),
            self._config.deploy_options,
            self._config.confirmation_timeout,
        )

    def _bind(self) -> None:
        assert self.hub is not None and self.asset is not None
        current = self.hub.query(self._plan.hub_reference_getter)
        if _same_address(current, self.asset.address):
            logger.info("Step 3: %s already bound to %s", self.hub.name, self.asset.address)
            return
        if not _same_address(current, ZERO_ADDRESS):
            raise VerificationError(
                f"{self.hub.name} already references {current}, expected placeholder",
                mismatches=[f"{self.hub.name}.{self._plan.hub_reference_getter}() == {current}"],
                deployed=self.deployed_addresses(),
            )

        logger.info("Step 3: binding %s to %s", self.hub.name, self.asset.address)
        result = self.hub.call(
            self._plan.bind_method, [self.asset.address], self._config.wiring_options
        )
        logger.info("Step 3: bound in block %s (%s)", result.block_number, result.hash)

    def _verify(self) -> None:
        assert self.hub is not None and self.asset is not None
        hub_ref = self.hub.query(self._plan.hub_reference_getter)
        asset_ref = self.asset.query(self._plan.asset_reference_getter)
        logger.info("Step 4: %s.%s() = %s", self.hub.name, self._plan.hub_reference_getter, hub_ref)
        logger.info(
            "Step 4: %s.%s() = %s", self.asset.name, self._plan.asset_reference_getter, asset_ref
        )

        mismatches = []
        if not _same_address(hub_ref, self.asset.address):
            mismatches.append(
                f"{self.hub.name}.{self._plan.hub_reference_getter}() == {hub_ref}, "
                f"expected {self.asset.address}"
            )
        if not _same_address(asset_ref, self.hub.address):
            mismatches.append(
                f"{self.asset.name}.{self._plan.asset_reference_getter}() == {asset_ref}, "
                f"expected {self.hub.address}"
            )
        if mismatches:
            raise VerificationError(
                "Contract cross-references do not match: " + "; ".join(mismatches),
                mismatches=mismatches,
                deployed=self.deployed_addresses(),
            )

    def _record(self) -> None:
        assert self._network is not None
        record = self._build_record(self._network)
        if self._store is not None:
            self._store.save(record)
        self.record = record

    def _build_record(self, network: NetworkIdentity) -> DeploymentRecord:
        assert self.hub is not None and self.asset is not None
        return DeploymentRecord(
            network=network,
            deployer=self._chain.sender,
            timestamp=datetime.now(timezone.utc),
            contracts=[
                ContractEntry(
                    name=self.hub.name,
                    address=self.hub.address,
                    constructor_args=self.hub_constructor_args(),
                    abi=self._hub_descriptor.abi,
                ),
                ContractEntry(
                    name=self.asset.name,
                    address=self.asset.address,
                    constructor_args=self.asset_constructor_args(self.hub.address),
                    abi=self._asset_descriptor.abi,
                ),
            ],
            config=self._config.record_settings(),
        )
