"""Run configuration for manga-deployments library."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from eth_utils import to_wei

from .constants import (
    DEFAULT_BASE_URI,
    DEFAULT_CALL_GAS_LIMIT,
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_GAS_LIMIT,
    DEFAULT_GAS_PRICE_GWEI,
    DEFAULT_PAYMENT_TOKEN,
    DEFAULT_RPC_URL,
    DEFAULT_WIRING_GAS_LIMIT,
)
from .exceptions import ValidationError
from .paths import get_default_artifacts_dir, get_default_deployments_dir
from .types import TxOptions
from .validation import validate_address


@dataclass(frozen=True)
class DeploymentConfig:
    """Everything one deployment run needs; fixed for the whole run."""

    rpc_url: str
    private_key: str = field(repr=False)
    platform_address: str
    payment_token: str = DEFAULT_PAYMENT_TOKEN
    base_uri: str = DEFAULT_BASE_URI
    gas_limit: int = DEFAULT_GAS_LIMIT
    wiring_gas_limit: int = DEFAULT_WIRING_GAS_LIMIT
    gas_price_wei: int = to_wei(DEFAULT_GAS_PRICE_GWEI, "gwei")
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    artifacts_dir: Path = field(default_factory=get_default_artifacts_dir)
    deployments_dir: Path = field(default_factory=get_default_deployments_dir)

    @property
    def deploy_options(self) -> TxOptions:
        return TxOptions(gas_limit=self.gas_limit, gas_price_wei=self.gas_price_wei)

    @property
    def wiring_options(self) -> TxOptions:
        return TxOptions(gas_limit=self.wiring_gas_limit, gas_price_wei=self.gas_price_wei)

    def record_settings(self) -> Dict[str, Any]:
        """Settings stored with a deployment record; the key and RPC URL are left out."""
        return {
            "platformAddress": self.platform_address,
            "paymentToken": self.payment_token,
            "uri": self.base_uri,
            "gasLimit": self.gas_limit,
            "wiringGasLimit": self.wiring_gas_limit,
            "gasPrice": self.gas_price_wei,
            "confirmationTimeout": self.confirmation_timeout,
        }


@dataclass(frozen=True)
class ActionConfig:
    """Configuration of the action and stats commands."""

    rpc_url: str
    private_key: str = field(repr=False)
    asset_address: Optional[str] = None
    hub_address: Optional[str] = None
    gas_limit: int = DEFAULT_CALL_GAS_LIMIT
    gas_price_wei: int = to_wei(DEFAULT_GAS_PRICE_GWEI, "gwei")
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    artifacts_dir: Path = field(default_factory=get_default_artifacts_dir)

    @property
    def call_options(self) -> TxOptions:
        return TxOptions(gas_limit=self.gas_limit, gas_price_wei=self.gas_price_wei)


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise ValidationError(f"Missing required configuration: set ${name}")
    return value


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValidationError(f"${name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValidationError(f"${name} must be positive, got {value}")
    return value


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"${name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValidationError(f"${name} must be positive, got {value}")
    return value


def _gas_price(environ: Mapping[str, str]) -> int:
    raw = environ.get("GAS_PRICE_GWEI") or DEFAULT_GAS_PRICE_GWEI
    try:
        return to_wei(raw, "gwei")
    except (ValueError, ArithmeticError) as e:
        raise ValidationError(f"$GAS_PRICE_GWEI must be a number, got {raw!r}") from e


def _optional_address(environ: Mapping[str, str], name: str) -> Optional[str]:
    raw = environ.get(name)
    if not raw:
        return None
    return validate_address(raw, name)


def _dir(environ: Mapping[str, str], name: str, default: Path) -> Path:
    raw = environ.get(name)
    return Path(raw).absolute() if raw else default


def load_deployment_config(environ: Optional[Mapping[str, str]] = None) -> DeploymentConfig:
    """
    Build a DeploymentConfig from environment variables.

    Args:
        environ: Variable mapping (defaults to os.environ)

    Raises:
        ValidationError: If a required variable is missing or malformed
    """
    if environ is None:
        environ = os.environ

    return DeploymentConfig(
        rpc_url=environ.get("RPC_URL") or DEFAULT_RPC_URL,
        private_key=_require(environ, "PRIVATE_KEY"),
        platform_address=validate_address(_require(environ, "PLATFORM_ADDRESS"), "PLATFORM_ADDRESS"),
        payment_token=validate_address(
            environ.get("PAYMENT_TOKEN") or DEFAULT_PAYMENT_TOKEN, "PAYMENT_TOKEN"
        ),
        base_uri=environ.get("BASE_URI") or DEFAULT_BASE_URI,
        gas_limit=_int(environ, "GAS_LIMIT", DEFAULT_GAS_LIMIT),
        wiring_gas_limit=_int(environ, "WIRING_GAS_LIMIT", DEFAULT_WIRING_GAS_LIMIT),
        gas_price_wei=_gas_price(environ),
        confirmation_timeout=_float(environ, "CONFIRMATION_TIMEOUT", DEFAULT_CONFIRMATION_TIMEOUT),
        artifacts_dir=_dir(environ, "ARTIFACTS_DIR", get_default_artifacts_dir()),
        deployments_dir=_dir(environ, "DEPLOYMENTS_DIR", get_default_deployments_dir()),
    )


def load_action_config(environ: Optional[Mapping[str, str]] = None) -> ActionConfig:
    """
    Build an ActionConfig from environment variables.

    The signing key is read from $CREATOR_KEY, falling back to $PRIVATE_KEY.

    Raises:
        ValidationError: If a required variable is missing or malformed
    """
    if environ is None:
        environ = os.environ

    private_key = environ.get("CREATOR_KEY") or environ.get("PRIVATE_KEY")
    if not private_key:
        raise ValidationError("Missing required configuration: set $CREATOR_KEY or $PRIVATE_KEY")

    return ActionConfig(
        rpc_url=environ.get("RPC_URL") or DEFAULT_RPC_URL,
        private_key=private_key,
        asset_address=_optional_address(environ, "MANGA_NFT_ADDRESS"),
        hub_address=_optional_address(environ, "DATAUPLOADER_ADDRESS"),
        gas_limit=_int(environ, "GAS_LIMIT", DEFAULT_CALL_GAS_LIMIT),
        gas_price_wei=_gas_price(environ),
        confirmation_timeout=_float(environ, "CONFIRMATION_TIMEOUT", DEFAULT_CONFIRMATION_TIMEOUT),
        artifacts_dir=_dir(environ, "ARTIFACTS_DIR", get_default_artifacts_dir()),
    )
