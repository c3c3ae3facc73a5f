"""Path management utilities for manga-deployments library."""

from pathlib import Path
from typing import List, Optional, Union


def get_default_deployments_dir() -> Path:
    """
    Get default directory for deployment records.

    Returns:
        Path to ./deployments
    """
    return Path.cwd() / "deployments"


def get_default_artifacts_dir() -> Path:
    """
    Get default directory for compiled contract artifacts (Foundry output).

    Returns:
        Path to ./out
    """
    return Path.cwd() / "out"


def get_record_paths(
    deployments_dir: Optional[Union[Path, str]] = None,
) -> tuple[Path, Path]:
    """
    Get deployment record locations.

    Args:
        deployments_dir: Custom records directory (defaults to ./deployments)

    Returns:
        Tuple of (records_dir, latest_path)
    """
    if deployments_dir is None:
        deployments_dir = get_default_deployments_dir()
    else:
        deployments_dir = Path(deployments_dir).absolute()

    return (deployments_dir, deployments_dir / "latest-deployment.json")


def get_artifact_candidates(artifacts_dir: Union[Path, str], contract_name: str) -> List[Path]:
    """
    Get the locations a contract artifact may live at, in lookup order.

    Args:
        artifacts_dir: Root of the build output
        contract_name: e.g. "MangaNFT"

    Returns:
        Foundry layout (<root>/<Name>.sol/<Name>.json), then flat
        (<root>/<Name>.json), then ABI-only (<root>/../abi/<Name>.json)
    """
    root = Path(artifacts_dir)
    return [
        root / f"{contract_name}.sol" / f"{contract_name}.json",
        root / f"{contract_name}.json",
        root.parent / "abi" / f"{contract_name}.json",
    ]
