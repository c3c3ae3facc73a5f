"""CLI interface for manga-deployments."""

import logging
from dataclasses import fields, is_dataclass, replace
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from .abi import load_descriptor
from .actions import check_platform_caller, mint, publish_chapter, register_investor
from .config import ActionConfig, load_action_config, load_deployment_config
from .constants import ASSET_CONTRACT, HUB_CONTRACT
from .contracts import ContractClient
from .exceptions import DeploymentStepError, OrchestrationError, ValidationError, VerificationError
from .keystore import LocalKeyStore
from .orchestrator import DeploymentOrchestrator
from .rpc import JsonRpcChain
from .stats import StatsAggregator
from .store import ArtifactStore
from .types import ActionOutcome, ChapterDraft, Unavailable
from .validation import validate_address, validate_token_id

logger = logging.getLogger(__name__)

app = typer.Typer(help="Deploy and operate the MangaNFT / MonthlyDataUploader contract pair")

EXIT_FAILURE = 1
EXIT_INVALID = 2


def _build_chain(rpc_url: str, private_key: str) -> JsonRpcChain:
    return JsonRpcChain(rpc_url, LocalKeyStore(private_key))


def _fail(error: OrchestrationError) -> NoReturn:
    code = EXIT_INVALID if isinstance(error, ValidationError) else EXIT_FAILURE
    typer.echo(f"Error: {error}", err=True)
    if isinstance(error, (DeploymentStepError, VerificationError)) and error.deployed:
        typer.echo("Contracts already on chain (manual remediation required):", err=True)
        for name, address in error.deployed.items():
            typer.echo(f"  {name}: {address}", err=True)
    raise typer.Exit(code=code)


def _client(config: ActionConfig, contract: str, address: Optional[str], env_name: str) -> ContractClient:
    if address is None:
        raise ValidationError(f"Missing required configuration: set ${env_name}")
    descriptor = load_descriptor(config.artifacts_dir, contract)
    chain = _build_chain(config.rpc_url, config.private_key)
    return ContractClient(chain, descriptor, address, config.confirmation_timeout)


def _asset(config: ActionConfig) -> ContractClient:
    return _client(config, ASSET_CONTRACT, config.asset_address, "MANGA_NFT_ADDRESS")


def _hub(config: ActionConfig) -> ContractClient:
    return _client(config, HUB_CONTRACT, config.hub_address, "DATAUPLOADER_ADDRESS")


def _echo_outcome(outcome: ActionOutcome) -> None:
    tx = outcome.transaction
    typer.echo(f"Transaction {tx.hash} confirmed in block {tx.block_number}")
    for event in outcome.events:
        typer.echo(f"{event.name}:")
        for key, value in event.fields.items():
            typer.echo(f"  {key}: {value}")


def _display(value: Any) -> str:
    if isinstance(value, Unavailable):
        return f"unavailable ({value.reason})"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _echo_stats(stats: Any) -> None:
    assert is_dataclass(stats)
    for item in fields(stats):
        typer.echo(f"{item.name}: {_display(getattr(stats, item.name))}")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("deploy")
def deploy_command(
    artifacts_dir: Optional[Path] = typer.Option(
        None, "--artifacts-dir", help="Foundry output directory (defaults to $ARTIFACTS_DIR or ./out)."
    ),
    deployments_dir: Optional[Path] = typer.Option(
        None, "--deployments-dir", help="Where deployment records are written."
    ),
) -> None:
    """Deploy both contracts, wire them together and record the result."""
    try:
        config = load_deployment_config()
        if artifacts_dir is not None:
            config = replace(config, artifacts_dir=artifacts_dir)
        if deployments_dir is not None:
            config = replace(config, deployments_dir=deployments_dir)

        orchestrator = DeploymentOrchestrator(
            config,
            _build_chain(config.rpc_url, config.private_key),
            hub=load_descriptor(config.artifacts_dir, HUB_CONTRACT),
            asset=load_descriptor(config.artifacts_dir, ASSET_CONTRACT),
            store=ArtifactStore(config.deployments_dir),
        )
        record = orchestrator.run()
    except OrchestrationError as e:
        _fail(e)

    typer.echo(f"Network: {record.network.name} (chain id {record.network.chain_id})")
    typer.echo(f"Deployer: {record.deployer}")
    for entry in record.contracts:
        typer.echo(f"{entry.name}: {entry.address}")


@app.command("mint")
def mint_command(
    to: str = typer.Argument(..., help="Recipient address."),
    token_id: str = typer.Argument(..., help="Token identifier (positive integer)."),
    amount: str = typer.Argument("1", help="Number of copies."),
) -> None:
    """Mint copies of a chapter token for free."""
    try:
        validate_address(to, "recipient address")
        validate_token_id(token_id)
        validate_token_id(amount, "amount")
        config = load_action_config()
        asset = _asset(config)
        outcome = mint(asset, to, token_id, config.call_options, amount)
    except OrchestrationError as e:
        _fail(e)
    _echo_outcome(outcome)


@app.command("publish")
def publish_command(
    creator: str = typer.Argument(..., help="Creator address."),
    uri: str = typer.Argument(..., help="Metadata URI of the chapter."),
    max_copies: str = typer.Option("100", "--max-copies", help="Copies available."),
    title_zh: str = typer.Option("", "--title-zh"),
    title_en: str = typer.Option("", "--title-en"),
    title_jp: str = typer.Option("", "--title-jp"),
    description_zh: str = typer.Option("", "--description-zh"),
    description_en: str = typer.Option("", "--description-en"),
    description_jp: str = typer.Option("", "--description-jp"),
) -> None:
    """Publish a new chapter."""
    try:
        creator = validate_address(creator, "creator address")
        draft = ChapterDraft(
            title_zh=title_zh,
            title_en=title_en,
            title_jp=title_jp,
            description_zh=description_zh,
            description_en=description_en,
            description_jp=description_jp,
            max_copies=validate_token_id(max_copies, "max copies"),
            uri=uri,
            creator=creator,
        )
        config = load_action_config()
        asset = _asset(config)
        check_platform_caller(asset)
        outcome = publish_chapter(asset, draft, config.call_options)
    except OrchestrationError as e:
        _fail(e)
    _echo_outcome(outcome)


@app.command("register")
def register_command(
    investor: str = typer.Argument(..., help="Investor address."),
    token_id: str = typer.Argument(..., help="Token identifier (positive integer)."),
) -> None:
    """Register an investor holding a chapter token."""
    try:
        validate_address(investor, "investor address")
        validate_token_id(token_id)
        config = load_action_config()
        asset = _asset(config)
        check_platform_caller(asset)
        outcome = register_investor(asset, investor, token_id, config.call_options)
    except OrchestrationError as e:
        _fail(e)
    _echo_outcome(outcome)


@app.command("creator-stats")
def creator_stats_command(
    creator: str = typer.Argument(..., help="Creator address."),
) -> None:
    """Show statistics of a creator."""
    try:
        validate_address(creator, "creator address")
        stats = StatsAggregator(_hub(load_action_config())).creator_stats(creator)
    except OrchestrationError as e:
        _fail(e)
    _echo_stats(stats)


@app.command("investor-stats")
def investor_stats_command(
    investor: str = typer.Argument(..., help="Investor address."),
) -> None:
    """Show statistics of an investor."""
    try:
        validate_address(investor, "investor address")
        stats = StatsAggregator(_hub(load_action_config())).investor_stats(investor)
    except OrchestrationError as e:
        _fail(e)
    _echo_stats(stats)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
