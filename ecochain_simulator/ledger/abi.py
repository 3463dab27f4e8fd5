"""Contract ABIs.

Built-in fragments cover only the methods and events the simulator uses.
Full Hardhat artifacts can be loaded instead with :func:`load_artifact_abi`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

__all__ = ["BUILTIN_ABIS", "load_artifact_abi"]


def _params(*pairs: tuple[str, str]) -> list[dict[str, Any]]:
    return [{"name": name, "type": abi_type} for name, abi_type in pairs]


def _function(
    name: str,
    inputs: list[dict[str, Any]],
    outputs: list[dict[str, Any]] | None = None,
    *,
    view: bool = False,
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs or [],
        "stateMutability": "view" if view else "nonpayable",
    }


def _event(name: str, *pairs: tuple[str, str], indexed: tuple[str, ...] = ()) -> dict[str, Any]:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": arg, "type": abi_type, "indexed": arg in indexed} for arg, abi_type in pairs
        ],
    }


ECO_TOKEN_ABI = [
    _function("balanceOf", _params(("account", "address")), _params(("", "uint256")), view=True),
    _event(
        "TokensRewarded",
        ("recipient", "address"),
        ("amount", "uint256"),
        ("reason", "string"),
        indexed=("recipient",),
    ),
]

ENVIRONMENTAL_DATA_ABI = [
    _function(
        "submitSensorData",
        _params(("sensorType", "string"), ("location", "string"), ("value", "uint256"), ("unit", "string")),
    ),
    _function(
        "getSensorData",
        _params(("dataId", "uint256")),
        _params(
            ("timestamp", "uint256"),
            ("sensorType", "string"),
            ("location", "string"),
            ("value", "uint256"),
            ("unit", "string"),
            ("submittedBy", "address"),
            ("verified", "bool"),
        ),
        view=True,
    ),
    _event(
        "DataSubmitted",
        ("dataId", "uint256"),
        ("sensorType", "string"),
        ("location", "string"),
        ("value", "uint256"),
        indexed=("dataId",),
    ),
    _event(
        "PolicyViolation",
        ("policyName", "string"),
        ("location", "string"),
        ("actualValue", "uint256"),
        ("threshold", "uint256"),
    ),
    _event(
        "PolicyCompliance",
        ("policyName", "string"),
        ("location", "string"),
        ("actualValue", "uint256"),
    ),
]

CITIZEN_REPORTING_ABI = [
    _function(
        "submitReport",
        _params(
            ("location", "string"),
            ("issueType", "string"),
            ("description", "string"),
            ("evidenceHash", "string"),
        ),
    ),
    _function(
        "getReport",
        _params(("reportId", "uint256")),
        _params(
            ("id", "uint256"),
            ("reporter", "address"),
            ("location", "string"),
            ("issueType", "string"),
            ("description", "string"),
            ("evidenceHash", "string"),
            ("timestamp", "uint256"),
            ("status", "uint8"),
            ("validationCount", "uint256"),
        ),
        view=True,
    ),
    _event(
        "ReportSubmitted",
        ("reportId", "uint256"),
        ("reporter", "address"),
        ("location", "string"),
        ("issueType", "string"),
        indexed=("reportId", "reporter"),
    ),
    _event(
        "ReportVerified",
        ("reportId", "uint256"),
        ("reporter", "address"),
        indexed=("reportId", "reporter"),
    ),
]

POLICY_COMPLIANCE_ABI = [
    _function(
        "checkCurrentCompliance",
        _params(("municipality", "string"), ("sensorType", "string")),
        _params(("isCompliant", "bool"), ("actualValue", "uint256"), ("requiredValue", "uint256")),
        view=True,
    ),
]

# Keyed by the Solidity contract name, which is also the artifact file stem.
BUILTIN_ABIS: dict[str, list[dict[str, Any]]] = {
    "EcoToken": ECO_TOKEN_ABI,
    "EnvironmentalData": ENVIRONMENTAL_DATA_ABI,
    "CitizenReporting": CITIZEN_REPORTING_ABI,
    "PolicyCompliance": POLICY_COMPLIANCE_ABI,
}


def load_artifact_abi(abi_dir: str | Path, contract: str) -> list[dict[str, Any]]:
    """Read the ``abi`` list from a Hardhat artifact.

    Both flat layouts (``<dir>/EcoToken.json``) and Hardhat's own
    (``<dir>/EcoToken.sol/EcoToken.json``) are accepted.
    """
    abi_dir = Path(abi_dir)
    for candidate in (abi_dir / f"{contract}.json", abi_dir / f"{contract}.sol" / f"{contract}.json"):
        if candidate.exists():
            with candidate.open("r") as fh:
                artifact = json.load(fh)
            return artifact["abi"] if isinstance(artifact, dict) else artifact
    raise FileNotFoundError(f"No artifact for {contract} under {abi_dir}")
