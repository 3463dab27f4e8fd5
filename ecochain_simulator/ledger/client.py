"""Ledger client - talks to the EVM node hosting the EcoChain contracts.

Built on ``web3``'s asyncio API.  Every public operation absorbs its own
failures: submissions return a failed :class:`SubmissionResult`, queries
return ``None`` (or ``"0"`` for balances).  Nothing raises past this
module's public surface.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from web3 import AsyncHTTPProvider, AsyncWeb3

from ecochain_simulator.exceptions import LedgerNotConnectedError
from ecochain_simulator.ledger.abi import BUILTIN_ABIS, load_artifact_abi
from ecochain_simulator.ledger.contracts import CONTRACT_EVENTS, ContractCapability, ContractName
from ecochain_simulator.ledger.events import EventFanout, EventObserver
from ecochain_simulator.ledger.settings import LedgerSettings
from ecochain_simulator.models import (
    CitizenReportRecord,
    ComplianceResult,
    LedgerEvent,
    SensorDataRecord,
    SubmissionResult,
)

__all__ = ["LedgerClient", "format_ether", "log_event", "to_chain_value"]

logger = logging.getLogger("ecochain_simulator.ledger.client")


def to_chain_value(value: float, decimals: int = 0) -> int:
    """Scale *value* by ``10**decimals`` and round half-up to an integer."""
    scaled = Decimal(str(value)).scaleb(decimals)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_ether(wei: int) -> str:
    """Ether amount as a plain decimal string with at least one fractional digit."""
    text = format(Decimal(AsyncWeb3.from_wei(wei, "ether")), "f")
    return text if "." in text else f"{text}.0"


def log_event(event: LedgerEvent) -> None:
    """Default observer: log each ledger event in readable form."""
    args = event.args
    if event.event == "DataSubmitted":
        logger.info("New sensor data: %s at %s = %s", args.get("sensorType"), args.get("location"), args.get("value"))
    elif event.event == "PolicyViolation":
        logger.warning(
            "Policy violation: %s at %s (%s vs %s)",
            args.get("policyName"),
            args.get("location"),
            args.get("actualValue"),
            args.get("threshold"),
        )
    elif event.event == "PolicyCompliance":
        logger.info(
            "Policy compliance: %s at %s (%s)", args.get("policyName"), args.get("location"), args.get("actualValue")
        )
    elif event.event == "ReportSubmitted":
        logger.info(
            "New citizen report: %s at %s (ID: %s)", args.get("issueType"), args.get("location"), args.get("reportId")
        )
    elif event.event == "ReportVerified":
        logger.info("Report verified: ID %s by %s", args.get("reportId"), args.get("reporter"))
    elif event.event == "TokensRewarded":
        amount = format_ether(args.get("amount", 0))
        logger.info("Tokens rewarded: %s ECO to %s for %s", amount, args.get("recipient"), args.get("reason"))
    else:
        logger.info("%s.%s: %s", event.contract, event.event, args)


class LedgerClient:
    """Connection to the ledger node plus one optional handle per contract.

    Parameters:
        settings: Endpoint, identity and contract addresses.
        web3: Pre-built ``AsyncWeb3`` instance.  When omitted one is created
            from ``settings.rpc_url`` during :meth:`initialize`.
    """

    def __init__(self, settings: LedgerSettings | None = None, *, web3: Any | None = None) -> None:
        self.settings = settings or LedgerSettings()
        self._w3 = web3
        self._owns_web3 = web3 is None
        self._connected = False
        self._account_address: str | None = None
        self._signer: Any | None = None
        self._contracts = {name: ContractCapability(name) for name in ContractName}
        self._events = EventFanout(poll_interval_s=self.settings.event_poll_interval_s)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def account_address(self) -> str | None:
        return self._account_address

    @property
    def events(self) -> EventFanout:
        return self._events

    def contract(self, name: ContractName) -> ContractCapability:
        return self._contracts[ContractName(name)]

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Connect, resolve the signing identity and bind contracts.

        Returns ``False`` (and logs why) instead of raising on failure.
        """
        if self._connected:
            return True
        try:
            if self._w3 is None:
                self._w3 = AsyncWeb3(AsyncHTTPProvider(self.settings.rpc_url))
            if not await self._w3.is_connected():
                raise ConnectionError(f"Cannot reach ledger node at {self.settings.rpc_url}")

            await self._resolve_identity()
            self._bind_contracts()
        except Exception as exc:
            logger.error("Failed to connect to ledger: %s", exc)
            self._connected = False
            return False

        self._connected = True
        logger.info("Connected to ledger with account %s", self._account_address)
        return True

    async def close(self) -> None:
        """Stop event polling and drop the connection."""
        await self._events.close()
        self._connected = False
        if self._owns_web3 and self._w3 is not None:
            provider = self._w3.provider
            if hasattr(provider, "disconnect"):
                await provider.disconnect()
            self._w3 = None
        logger.info("Ledger client closed")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def submit_sensor_data(self, category: str, location: str, value: float, unit: str) -> SubmissionResult:
        """Record one sensor reading on the environmental-data contract."""
        result = await self._transact(
            ContractName.ENVIRONMENTAL_DATA,
            "submitSensorData",
            lambda: (str(category), location, to_chain_value(value, self.settings.value_decimals), unit),
        )
        if result.success:
            logger.info("Sensor data submitted: %s = %s %s at %s", category, value, unit, location)
        else:
            logger.error("Error submitting sensor data: %s", result.error)
        return result

    async def submit_citizen_report(
        self,
        location: str,
        issue_type: str,
        description: str,
        evidence_hash: str,
    ) -> SubmissionResult:
        result = await self._transact(
            ContractName.CITIZEN_REPORTING,
            "submitReport",
            lambda: (location, issue_type, description, evidence_hash),
        )
        if result.success:
            logger.info("Citizen report submitted: %s at %s", issue_type, location)
        else:
            logger.error("Error submitting citizen report: %s", result.error)
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def check_policy_compliance(self, municipality: str, category: str) -> ComplianceResult | None:
        """Current compliance of *municipality* for one sensor category.

        ``None`` means compliance could not be determined.
        """
        try:
            contract = self._ready(ContractName.POLICY_COMPLIANCE)
            is_compliant, actual, required = await contract.functions.checkCurrentCompliance(
                municipality, str(category)
            ).call()
            return ComplianceResult(is_compliant=is_compliant, actual_value=actual, required_value=required)
        except Exception as exc:
            logger.error("Error checking policy compliance: %s", exc)
            return None

    async def get_token_balance(self, address: str) -> str:
        """ECO balance of *address* as a decimal string; ``"0"`` on failure."""
        try:
            contract = self._ready(ContractName.ECO_TOKEN)
            balance = await contract.functions.balanceOf(AsyncWeb3.to_checksum_address(address)).call()
            return format_ether(balance)
        except Exception as exc:
            logger.error("Error getting token balance: %s", exc)
            return "0"

    async def get_sensor_data(self, data_id: int) -> SensorDataRecord | None:
        try:
            contract = self._ready(ContractName.ENVIRONMENTAL_DATA)
            data = await contract.functions.getSensorData(data_id).call()
            return SensorDataRecord(
                timestamp=data[0],
                sensor_type=data[1],
                location=data[2],
                value=data[3],
                unit=data[4],
                submitted_by=data[5],
                verified=data[6],
            )
        except Exception as exc:
            logger.error("Error getting sensor data: %s", exc)
            return None

    async def get_citizen_report(self, report_id: int) -> CitizenReportRecord | None:
        try:
            contract = self._ready(ContractName.CITIZEN_REPORTING)
            report = await contract.functions.getReport(report_id).call()
            return CitizenReportRecord(
                report_id=report[0],
                reporter=report[1],
                location=report[2],
                issue_type=report[3],
                description=report[4],
                evidence_hash=report[5],
                timestamp=report[6],
                status=report[7],
                validation_count=report[8],
            )
        except Exception as exc:
            logger.error("Error getting citizen report: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def subscribe_to_events(self, observer: EventObserver | None = None) -> int:
        """Listen for every bound contract's domain events.

        Each ``(contract, event)`` pair is registered at most once and each
        observer is attached at most once, so calling this again is safe.
        Returns the number of newly registered listeners.
        """
        if not self._connected:
            logger.warning("Not connected to ledger - cannot subscribe to events")
            return 0

        self._events.add_observer(observer or log_event)
        added = 0
        for name, event_names in CONTRACT_EVENTS.items():
            capability = self._contracts[name]
            if not capability.available:
                continue
            for event_name in event_names:
                try:
                    if await self._events.register(name, capability.handle, event_name):
                        added += 1
                except Exception as exc:
                    logger.warning("Could not listen for %s.%s: %s", name.display_name, event_name, exc)

        self._events.start()
        return added

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _resolve_identity(self) -> None:
        if self.settings.private_key:
            self._signer = self._w3.eth.account.from_key(self.settings.private_key)
            self._account_address = self._signer.address
            return

        accounts = await self._w3.eth.accounts
        if not accounts:
            raise RuntimeError("No accounts available")
        self._account_address = accounts[0]
        self._w3.eth.default_account = self._account_address

    def _bind_contracts(self) -> None:
        for name in ContractName:
            address = self.settings.address_for(name)
            if address is None:
                logger.info("%s address not configured - contract unavailable", name.display_name)
                self._contracts[name] = ContractCapability(name)
                continue
            checksum = AsyncWeb3.to_checksum_address(address)
            handle = self._w3.eth.contract(address=checksum, abi=self._abi_for(name))
            self._contracts[name] = ContractCapability(name, handle, checksum)
            logger.debug("Bound %s at %s", name.display_name, checksum)

    def _abi_for(self, name: ContractName) -> list[dict[str, Any]]:
        if self.settings.abi_dir is not None:
            return load_artifact_abi(self.settings.abi_dir, name.display_name)
        return BUILTIN_ABIS[name.display_name]

    def _ready(self, name: ContractName) -> Any:
        """Capability guard shared by every operation."""
        handle = self._contracts[name].require()
        if not self._connected:
            raise LedgerNotConnectedError()
        return handle

    async def _transact(
        self,
        name: ContractName,
        method: str,
        build_args: Callable[[], tuple[Any, ...]],
    ) -> SubmissionResult:
        """Send one transaction and wait for its confirmation."""
        try:
            contract = self._ready(name)
            call = getattr(contract.functions, method)(*build_args())
            tx_hash = await self._send(call)
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.settings.confirmation_timeout_s
            )
            if receipt.get("status", 1) == 0:
                raise RuntimeError(f"Transaction reverted: {AsyncWeb3.to_hex(receipt['transactionHash'])}")
            return SubmissionResult.ok(
                transaction_hash=AsyncWeb3.to_hex(receipt["transactionHash"]),
                block_number=receipt["blockNumber"],
            )
        except Exception as exc:
            return SubmissionResult.failed(str(exc))

    async def _send(self, call: Any) -> Any:
        if self._signer is None:
            return await call.transact({"from": self._account_address})

        nonce = await self._w3.eth.get_transaction_count(self._account_address, "pending")
        tx = await call.build_transaction({"from": self._account_address, "nonce": nonce})
        signed = self._signer.sign_transaction(tx)
        return await self._w3.eth.send_raw_transaction(signed.raw_transaction)
