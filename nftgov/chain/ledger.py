"""
Local Ledger: deterministic, in-process chain for governance tests

Implements:
  - Deterministic signer accounts with native balances and nonces
  - Automine: every successful transaction mines exactly one block
  - Atomic transactions: a revert restores all state and mines nothing
  - Nested calls by ABI calldata (contract → contract, msg.sender = caller)
  - hardhat_mine-style block advancement and evm_snapshot / evm_revert
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import rlp
from eth_utils import encode_hex, keccak, to_canonical_address

from ..config.loader import ChainConfig
from ..crypto.abi import decode_arguments, parse_signature, split_calldata
from ..crypto.address import (
    Account,
    derive_accounts,
    generate_contract_address,
    normalize_address,
)
from ..constants import GENESIS_BLOCK_NUMBER
from ..exceptions import AbiError, NftGovException, Revert
from ..logger import get_logger
from .contract import Contract, EventLog, TransactionReceipt

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ChainError(NftGovException):
    """Misuse of the ledger itself (bad snapshot id, no active call, …)."""


class TransactionReverted(ChainError):
    """
    A transaction reverted. No state changed and no block was mined.

    Attributes:
        reason: Revert reason string, or None for a revert without a message.
    """

    def __init__(self, reason: Optional[str]):
        self.reason = reason
        if reason is None:
            msg = "Transaction reverted without a reason string"
        else:
            msg = f"Transaction reverted with reason string '{reason}'"
        super().__init__(msg)


# ══════════════════════════════════════════════════════════════════════
#  CALL FRAMES
# ══════════════════════════════════════════════════════════════════════

@dataclass
class CallFrame:
    """One level of the call stack inside a transaction."""
    contract: str
    sender: str
    value: int
    block_number: int
    events: List[EventLog] = field(default_factory=list)  # shared per transaction


# ══════════════════════════════════════════════════════════════════════
#  CHAIN
# ══════════════════════════════════════════════════════════════════════

class Chain:
    """
    Deterministic local ledger.

    ``block_number`` is the latest mined block. A transaction executes in the
    block after it and mines that block when it succeeds. Read-only calls
    made outside a transaction also see that pending block.
    """

    def __init__(self, config: Optional[ChainConfig] = None):
        self.config = config or ChainConfig()
        self.accounts: List[Account] = derive_accounts(
            self.config.account_seed, self.config.account_count
        )
        self.block_number: int = GENESIS_BLOCK_NUMBER

        self._nonces: Dict[str, int] = {}
        self._balances: Dict[str, int] = {
            acct.address: self.config.initial_balance_wei for acct in self.accounts
        }
        self._contracts: Dict[str, Contract] = {}
        self._receipts: List[TransactionReceipt] = []
        self._frames: List[CallFrame] = []

        self._snapshots: Dict[int, Dict[str, Any]] = {}
        self._next_snapshot_id = 1

        logger.info(
            f"Ledger ready: {len(self.accounts)} accounts, "
            f"deployer {self.default_account.address}"
        )

    # ── Accounts & balances ───────────────────────────────────────────

    @property
    def default_account(self) -> Account:
        return self.accounts[0]

    def nonce_of(self, address) -> int:
        return self._nonces.get(normalize_address(address), 0)

    def balance_of(self, address) -> int:
        """Native balance in wei."""
        return self._balances.get(normalize_address(address), 0)

    def _move_value(self, sender: str, recipient: str, value: int):
        if value < 0:
            raise ChainError("Value cannot be negative")
        if value == 0:
            return
        bal = self._balances.get(sender, 0)
        if bal < value:
            raise Revert(None)
        self._balances[sender] = bal - value
        self._balances[recipient] = self._balances.get(recipient, 0) + value

    # ── Contracts ─────────────────────────────────────────────────────

    def get_contract(self, address) -> Optional[Contract]:
        return self._contracts.get(normalize_address(address))

    def is_contract(self, address) -> bool:
        return normalize_address(address) in self._contracts

    @property
    def receipts(self) -> List[TransactionReceipt]:
        return list(self._receipts)

    # ── Execution context ─────────────────────────────────────────────

    @property
    def in_transaction(self) -> bool:
        return bool(self._frames)

    @property
    def current_frame(self) -> CallFrame:
        if not self._frames:
            raise ChainError("No transaction is executing")
        return self._frames[-1]

    @property
    def block_context(self) -> int:
        """``block.number`` for the code currently running."""
        if self._frames:
            return self._frames[-1].block_number
        return self.block_number + 1

    def emit(self, address: str, event: str, args: Dict[str, Any]):
        frame = self.current_frame
        frame.events.append(EventLog(
            event=event,
            address=address,
            args=args,
            block_number=frame.block_number,
            log_index=len(frame.events),
        ))

    # ── Transactions ──────────────────────────────────────────────────

    def deploy(self, contract_cls: type, *args, sender=None) -> Contract:
        """
        Deploy *contract_cls* with constructor *args*.

        The receipt is available as ``contract.deploy_receipt``.
        """
        sender_addr = normalize_address(sender or self.default_account)
        address = generate_contract_address(sender_addr, self.nonce_of(sender_addr))
        contract = contract_cls(self, address)

        def run():
            self._contracts[address] = contract
            self._enter(contract, contract_cls.constructor, args, 0, sender=sender_addr)
            return contract

        receipt = self._run_transaction(sender_addr, None, run, value=0, label=f"deploy {contract_cls.__name__}")
        receipt.contract_address = address
        contract.deploy_receipt = receipt
        logger.info(f"{contract_cls.__name__} deployed at {address} in block #{receipt.block_number}")
        return contract

    def transact(
        self,
        contract: Contract,
        method: Callable,
        args: Sequence[Any],
        sender=None,
        value: int = 0,
    ):
        """
        Invoke an external method.

        Outside a transaction this sends one and returns its receipt; inside a
        transaction it is a nested call from the executing contract and
        returns the method's own return value.
        """
        if self._frames:
            require_payable(method, value)
            self._move_value(self.current_frame.contract, contract.address, value)
            return self._enter(contract, method.__wrapped__, args, value)

        sender_addr = normalize_address(sender or self.default_account)

        def run():
            require_payable(method, value)
            self._move_value(sender_addr, contract.address, value)
            return self._enter(contract, method.__wrapped__, args, value, sender=sender_addr)

        return self._run_transaction(
            sender_addr, contract.address, run, value=value,
            label=f"{type(contract).__name__}.{method.__name__}",
        )

    def send_value(self, to, value: int, sender=None) -> TransactionReceipt:
        """Plain value transfer; contracts must accept ether."""
        sender_addr = normalize_address(sender or self.default_account)
        to_addr = normalize_address(to)

        def run():
            target = self._contracts.get(to_addr)
            if target is not None and not target.accepts_ether:
                raise Revert(None)
            self._move_value(sender_addr, to_addr, value)

        return self._run_transaction(sender_addr, to_addr, run, value=value, label="transfer")

    def call(self, target, calldata: bytes, value: int = 0) -> Any:
        """
        Low-level call from the executing contract.

        Calls to accounts without code only move *value*.
        """
        frame = self.current_frame
        target_addr = normalize_address(target)
        contract = self._contracts.get(target_addr)

        if contract is None:
            self._move_value(frame.contract, target_addr, value)
            return b""

        if not calldata:
            if not contract.accepts_ether:
                raise Revert(None)
            self._move_value(frame.contract, target_addr, value)
            return b""

        try:
            selector, encoded = split_calldata(bytes(calldata))
            method = contract.interface.method_for_selector(selector)
            if method is None:
                raise Revert(None)
            _, types = parse_signature(method.abi_signature)
            args = decode_arguments(types, encoded)
        except AbiError as e:
            raise Revert(None) from e
        require_payable(method, value)

        self._move_value(frame.contract, target_addr, value)
        return self._enter(contract, method.__wrapped__, args, value)

    def _enter(
        self,
        contract: Contract,
        fn: Callable,
        args: Sequence[Any],
        value: int,
        sender: Optional[str] = None,
    ):
        """Run *fn* on *contract* in a new frame; the sender defaults to the caller."""
        parent = self.current_frame
        frame = CallFrame(
            contract=contract.address,
            sender=sender if sender is not None else parent.contract,
            value=value,
            block_number=parent.block_number,
            events=parent.events,
        )
        self._frames.append(frame)
        try:
            return fn(contract, *args)
        finally:
            self._frames.pop()

    def _run_transaction(
        self,
        sender: str,
        to: Optional[str],
        run: Callable[[], Any],
        value: int,
        label: str,
    ) -> TransactionReceipt:
        state = self._capture_state()
        nonce = self.nonce_of(sender)
        # outer frame collecting events for the whole transaction
        root = CallFrame(contract=sender, sender=sender, value=value, block_number=self.block_number + 1)
        self._frames.append(root)
        try:
            result = run()
        except Revert as e:
            self._restore_state(state)
            logger.info(f"{label} from {sender} reverted: {e.reason or 'without reason'}")
            raise TransactionReverted(e.reason) from e
        except Exception:
            self._restore_state(state)
            raise
        finally:
            self._frames.clear()

        self.block_number += 1
        self._nonces[sender] = nonce + 1
        receipt = TransactionReceipt(
            tx_hash=self._tx_hash(sender, nonce, to, label),
            block_number=self.block_number,
            sender=sender,
            to=to,
            nonce=nonce,
            events=list(root.events),
            return_value=result,
        )
        self._receipts.append(receipt)
        logger.debug(f"{label} from {sender} mined in block #{self.block_number}")
        return receipt

    @staticmethod
    def _tx_hash(sender: str, nonce: int, to: Optional[str], label: str) -> str:
        payload = rlp.encode([
            to_canonical_address(sender),
            nonce,
            to_canonical_address(to) if to else b"",
            label.encode(),
        ])
        return encode_hex(keccak(payload))

    # ── Mining ────────────────────────────────────────────────────────

    def mine(self, blocks: Union[int, str] = 1) -> int:
        """
        Mine *blocks* empty blocks (int or hex quantity like ``"0x1"``).

        Returns the new block number.
        """
        if self._frames:
            raise ChainError("Cannot mine while a transaction is executing")
        if isinstance(blocks, str):
            try:
                blocks = int(blocks, 16)
            except ValueError as e:
                raise ChainError(f"Invalid block quantity: {blocks!r}") from e
        if blocks < 1:
            raise ChainError(f"Block count must be at least 1, got {blocks}")
        self.block_number += blocks
        logger.info(f"Mined {blocks} block(s) → #{self.block_number}")
        return self.block_number

    # ── Snapshots ─────────────────────────────────────────────────────

    def _capture_state(self) -> Dict[str, Any]:
        return {
            "block_number": self.block_number,
            "nonces": dict(self._nonces),
            "balances": dict(self._balances),
            "contracts": {
                addr: (c, copy.deepcopy(c.storage)) for addr, c in self._contracts.items()
            },
            "receipts": len(self._receipts),
        }

    def _restore_state(self, state: Dict[str, Any]):
        self.block_number = state["block_number"]
        self._nonces = dict(state["nonces"])
        self._balances = dict(state["balances"])
        self._contracts = {}
        for addr, (contract, storage) in state["contracts"].items():
            contract.storage = copy.deepcopy(storage)
            self._contracts[addr] = contract
        del self._receipts[state["receipts"]:]

    def snapshot(self) -> int:
        """Save the current state; returns an id for :meth:`revert`."""
        snapshot_id = self._next_snapshot_id
        self._next_snapshot_id += 1
        self._snapshots[snapshot_id] = self._capture_state()
        logger.debug(f"Snapshot {snapshot_id} at block #{self.block_number}")
        return snapshot_id

    def revert(self, snapshot_id: int):
        """
        Restore the state saved by *snapshot_id*.

        That snapshot and every later one are consumed.
        """
        state = self._snapshots.get(snapshot_id)
        if state is None:
            raise ChainError(f"Unknown snapshot id {snapshot_id}")
        self._restore_state(state)
        for sid in [s for s in self._snapshots if s >= snapshot_id]:
            del self._snapshots[sid]
        logger.debug(f"Reverted to snapshot {snapshot_id} (block #{self.block_number})")

    def __repr__(self) -> str:
        return f"<Chain block=#{self.block_number} contracts={len(self._contracts)}>"


def require_payable(method: Callable, value: int):
    if value and not getattr(method, "payable", False):
        raise Revert(None)
