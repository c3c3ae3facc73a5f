"""ABI helpers and contract artifact parsers for manga-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address

from .exceptions import DefectiveArtifactError, MethodNotFoundError, NotFoundError
from .paths import get_artifact_candidates
from .types import ContractDescriptor

AbiEntry = Dict[str, Any]


def canonical_type(param: Dict[str, Any]) -> str:
    """
    Render an ABI parameter as its canonical type string.

    Tuples are expanded from their components, e.g. ``(uint256,address)[]``.
    """
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def input_types(entry: AbiEntry) -> List[str]:
    return [canonical_type(p) for p in entry.get("inputs", [])]


def output_types(entry: AbiEntry) -> List[str]:
    return [canonical_type(p) for p in entry.get("outputs", [])]


def signature(entry: AbiEntry) -> str:
    """Canonical signature, e.g. ``Transfer(address,address,uint256)``."""
    return f"{entry['name']}({','.join(input_types(entry))})"


def function_selector(entry: AbiEntry) -> bytes:
    return keccak(text=signature(entry))[:4]


def event_topic(entry: AbiEntry) -> bytes:
    return keccak(text=signature(entry))


def encode_arguments(entry: AbiEntry, args: Sequence[Any]) -> bytes:
    types = input_types(entry)
    if not types:
        return b""
    return abi_encode(types, list(args))


def encode_function_call(entry: AbiEntry, args: Sequence[Any]) -> bytes:
    return function_selector(entry) + encode_arguments(entry, args)


def normalize_value(abi_type: str, value: Any) -> Any:
    """Checksum decoded addresses (also inside address arrays)."""
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("address[") and isinstance(value, (list, tuple)):
        return [to_checksum_address(v) for v in value]
    if isinstance(value, tuple) and abi_type.endswith("]"):
        return list(value)
    return value


def decode_outputs(entry: AbiEntry, data: bytes) -> Any:
    """
    Decode the return data of a function call.

    Returns:
        None for functions without outputs, the bare value for a single
        output, otherwise a tuple in declaration order
    """
    types = output_types(entry)
    if not types:
        return None
    values = abi_decode(types, data)
    normalized = tuple(normalize_value(t, v) for t, v in zip(types, values))
    if len(normalized) == 1:
        return normalized[0]
    return normalized


def constructor_entry(abi: List[AbiEntry]) -> AbiEntry:
    """Constructor ABI entry; contracts without one take no arguments."""
    for item in abi:
        if item.get("type") == "constructor":
            return item
    return {"type": "constructor", "inputs": []}


def find_function(abi: List[AbiEntry], name: str, arity: Optional[int] = None) -> AbiEntry:
    """
    Look up a function by name, disambiguating overloads by arity.

    Raises:
        MethodNotFoundError: If no function with that name (and arity) exists
    """
    candidates = [
        item for item in abi if item.get("type") == "function" and item.get("name") == name
    ]
    if arity is not None and len(candidates) > 1:
        candidates = [c for c in candidates if len(c.get("inputs", [])) == arity]
    if not candidates:
        raise MethodNotFoundError(f"Method '{name}' not found in ABI")
    return candidates[0]


def event_entries(abi: List[AbiEntry]) -> List[AbiEntry]:
    return [item for item in abi if item.get("type") == "event" and not item.get("anonymous")]


def parse_artifact(file_path: Path, contract_name: Optional[str] = None) -> ContractDescriptor:
    """
    Parse a compiled contract artifact.

    Supported shapes:
    - Foundry: {"abi": [...], "bytecode": {"object": "0x..."}}
    - Hardhat: {"abi": [...], "bytecode": "0x..."}
    - ABI-only: {"abi": [...]} or a bare ABI list

    Args:
        file_path: Path to the artifact JSON file
        contract_name: Name to record (defaults to the file stem)

    Returns:
        ContractDescriptor; bytecode is None for ABI-only artifacts

    Raises:
        DefectiveArtifactError: If the artifact cannot be parsed or has no ABI
    """
    try:
        with open(file_path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise DefectiveArtifactError(f"Could not read contract artifact {file_path}: {e}") from e

    name = contract_name or Path(file_path).stem

    if isinstance(data, list):
        return ContractDescriptor(name=name, abi=data)

    abi = data.get("abi") if isinstance(data, dict) else None
    if not abi:
        raise DefectiveArtifactError(f"Missing 'abi' in contract artifact: {file_path}")

    bytecode: Union[str, Dict[str, Any], None] = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if bytecode and not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    if bytecode == "0x":
        bytecode = None

    return ContractDescriptor(name=name, abi=abi, bytecode=bytecode)


def load_descriptor(artifacts_dir: Union[Path, str], contract_name: str) -> ContractDescriptor:
    """
    Load a contract descriptor from the first artifact location that exists.

    Raises:
        NotFoundError: If no artifact exists for the contract
    """
    candidates = get_artifact_candidates(artifacts_dir, contract_name)
    for candidate in candidates:
        if candidate.exists():
            return parse_artifact(candidate, contract_name)

    raise NotFoundError(
        f"Artifact for '{contract_name}' not found (looked in "
        f"{', '.join(str(c) for c in candidates)}). Run `forge build` first."
    )
