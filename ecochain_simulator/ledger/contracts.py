"""Contract capabilities.

Every contract the simulator talks to is optional: when its address is not
configured it is simply unavailable.  A :class:`ContractCapability` wraps
the bound handle (or its absence) so each operation needs one guard,
:meth:`ContractCapability.require`.
"""

from __future__ import annotations

from typing import Any

try:
    from enum import StrEnum
except ImportError:  # Python < 3.11
    from enum import Enum

    class StrEnum(str, Enum):  # type: ignore[no-redef]
        """Minimal backport of ``enum.StrEnum`` for Python 3.10."""

from ecochain_simulator.exceptions import ContractNotLoadedError

__all__ = ["CONTRACT_EVENTS", "ContractCapability", "ContractName"]


class ContractName(StrEnum):
    """Contracts the simulator can bind."""

    ECO_TOKEN = "eco_token"
    ENVIRONMENTAL_DATA = "environmental_data"
    CITIZEN_REPORTING = "citizen_reporting"
    POLICY_COMPLIANCE = "policy_compliance"

    @property
    def display_name(self) -> str:
        """Solidity contract name, e.g. ``"EnvironmentalData"``."""
        return "".join(part.capitalize() for part in self.value.split("_"))


# Domain events each contract emits, in subscription order.
CONTRACT_EVENTS: dict[ContractName, tuple[str, ...]] = {
    ContractName.ENVIRONMENTAL_DATA: ("DataSubmitted", "PolicyViolation", "PolicyCompliance"),
    ContractName.CITIZEN_REPORTING: ("ReportSubmitted", "ReportVerified"),
    ContractName.ECO_TOKEN: ("TokensRewarded",),
    ContractName.POLICY_COMPLIANCE: (),
}


class ContractCapability:
    """A contract handle that may or may not be present."""

    def __init__(self, name: ContractName, handle: Any | None = None, address: str | None = None) -> None:
        self.name = name
        self.handle = handle
        self.address = address

    @property
    def available(self) -> bool:
        return self.handle is not None

    def require(self) -> Any:
        """Return the bound handle or raise :class:`ContractNotLoadedError`."""
        if self.handle is None:
            raise ContractNotLoadedError(self.name.display_name)
        return self.handle

    def __repr__(self) -> str:
        state = self.address if self.available else "absent"
        return f"ContractCapability({self.name.value}, {state})"
