"""Exceptions raised inside the simulator.

Ledger errors never leave the ledger client's public operations; they are
turned into result values there.  Session and orchestrator errors reach
the caller.
"""

from __future__ import annotations

__all__ = [
    "ContractNotLoadedError",
    "EcoChainError",
    "LedgerNotConnectedError",
    "SimulationAlreadyRunningError",
    "SubmissionInProgressError",
]


class EcoChainError(Exception):
    """Base class for simulator errors."""


class LedgerNotConnectedError(EcoChainError, RuntimeError):
    def __init__(self, message: str = "Not connected to ledger") -> None:
        super().__init__(message)


class ContractNotLoadedError(EcoChainError, RuntimeError):
    """A contract's address was not configured, so it was never bound."""

    def __init__(self, display_name: str) -> None:
        super().__init__(f"{display_name} contract not loaded")
        self.display_name = display_name


class SimulationAlreadyRunningError(EcoChainError, RuntimeError):
    def __init__(self, message: str = "Simulation already running") -> None:
        super().__init__(message)


class SubmissionInProgressError(EcoChainError, RuntimeError):
    def __init__(self, message: str = "A submission run is already in progress") -> None:
        super().__init__(message)
