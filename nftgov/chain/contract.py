"""
Contract Runtime: Python contracts on the local ledger

Provides the pieces every simulated contract is built from:
  - external():       marks a state-mutating entry point and its ABI signature
  - require():        precondition check raising Revert(reason)
  - Contract:         base class holding per-contract storage and msg context
  - ContractInterface: selector table / calldata builder (ethers-style)
  - EventLog / TransactionReceipt: what a mined transaction produced
"""

import functools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from ..crypto.abi import encode_function_call, function_selector, parse_signature
from ..crypto.address import normalize_address
from ..exceptions import AbiError, Revert

if TYPE_CHECKING:
    from .ledger import Chain


# ══════════════════════════════════════════════════════════════════════
#  PRECONDITIONS
# ══════════════════════════════════════════════════════════════════════

def require(condition: bool, reason: Optional[str] = None):
    """Revert the current transaction with *reason* unless *condition* holds."""
    if not condition:
        raise Revert(reason)


def external(signature: str, payable: bool = False):
    """
    Mark a contract method as an external, state-mutating entry point.

    Calling the method outside a transaction sends a transaction from the
    default account; inside a transaction it becomes a nested call whose
    ``msg.sender`` is the calling contract.
    """
    parse_signature(signature)  # fail fast on typos at class definition

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(self, *args, value: int = 0):
            return self.chain.transact(self, wrapper, args, value=value)

        wrapper.abi_signature = signature
        wrapper.payable = payable
        return wrapper

    return decorator


def is_external(attr: Any) -> bool:
    return callable(attr) and hasattr(attr, "abi_signature")


# ══════════════════════════════════════════════════════════════════════
#  EVENTS & RECEIPTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EventLog:
    """A single event emitted during a transaction."""
    event: str
    address: str
    args: Dict[str, Any]
    block_number: int
    log_index: int

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "address": self.address,
            "args": dict(self.args),
            "blockNumber": self.block_number,
            "logIndex": self.log_index,
        }


@dataclass
class TransactionReceipt:
    """Result of a mined transaction."""
    tx_hash: str
    block_number: int
    sender: str
    to: Optional[str]
    nonce: int
    events: List[EventLog] = field(default_factory=list)
    return_value: Any = None
    contract_address: Optional[str] = None
    status: int = 1

    def find_event(self, name: str) -> Optional[EventLog]:
        """First event called *name*, like ``rc.events.find(e => e.event === name)``."""
        for ev in self.events:
            if ev.event == name:
                return ev
        return None

    def events_named(self, name: str) -> List[EventLog]:
        return [ev for ev in self.events if ev.event == name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionHash": self.tx_hash,
            "blockNumber": self.block_number,
            "from": self.sender,
            "to": self.to,
            "nonce": self.nonce,
            "contractAddress": self.contract_address,
            "status": self.status,
            "events": [ev.to_dict() for ev in self.events],
        }


# ══════════════════════════════════════════════════════════════════════
#  INTERFACE
# ══════════════════════════════════════════════════════════════════════

class ContractInterface:
    """
    Selector table for a contract class.

    Mirrors ethers' ``contract.interface``: build calldata by Python method
    name, and resolve an incoming selector back to the method.
    """

    def __init__(self, contract_cls: type):
        self.contract_name = contract_cls.__name__
        self._by_name: Dict[str, Callable] = {}
        self._by_selector: Dict[bytes, Callable] = {}
        for attr_name in dir(contract_cls):
            attr = getattr(contract_cls, attr_name, None)
            if not is_external(attr):
                continue
            self._by_name[attr_name] = attr
            self._by_selector[function_selector(attr.abi_signature)] = attr

    @property
    def functions(self) -> Dict[str, str]:
        """Python method name → ABI signature."""
        return {name: fn.abi_signature for name, fn in self._by_name.items()}

    def signature_of(self, name: str) -> str:
        fn = self._by_name.get(name)
        if fn is None:
            raise AbiError(f"{self.contract_name} has no external function '{name}'")
        return fn.abi_signature

    def encode_function_data(self, name: str, args: Sequence[Any] = ()) -> bytes:
        """Calldata for ``name(*args)``; address-like arguments are normalised."""
        signature = self.signature_of(name)
        _, types = parse_signature(signature)
        coerced = [
            normalize_address(a) if t == "address" else a
            for t, a in zip(types, args)
        ]
        return encode_function_call(signature, coerced)

    def method_for_selector(self, selector: bytes) -> Optional[Callable]:
        return self._by_selector.get(bytes(selector))

    def __repr__(self) -> str:
        return f"<ContractInterface {self.contract_name} functions={len(self._by_name)}>"


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT BASE
# ══════════════════════════════════════════════════════════════════════

class Contract:
    """
    Base class for contracts living on a :class:`~nftgov.chain.ledger.Chain`.

    Subclasses keep all mutable state on ``self.storage`` (an instance of
    ``storage_cls``); the ledger snapshots and restores that object, so
    anything stored elsewhere would survive a revert.
    """

    storage_cls: type = dict
    accepts_ether: bool = False
    interface: ContractInterface

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.interface = ContractInterface(cls)

    def __init__(self, chain: "Chain", address: str):
        self.chain = chain
        self.address = address
        self.storage = self.storage_cls()

    def constructor(self, *args):
        """Runs once, inside the deployment transaction."""

    # ── Execution context ─────────────────────────────────────────────

    @property
    def msg_sender(self) -> str:
        return self.chain.current_frame.sender

    @property
    def msg_value(self) -> int:
        return self.chain.current_frame.value

    @property
    def block_number(self) -> int:
        """``block.number`` as seen by this call (pending block outside a tx)."""
        return self.chain.block_context

    def emit(self, event: str, **args):
        self.chain.emit(self.address, event, args)

    # ── Callers ───────────────────────────────────────────────────────

    def connect(self, account) -> "ConnectedContract":
        return ConnectedContract(self, normalize_address(account))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {self.address}>"


class ConnectedContract:
    """A contract handle whose transactions are sent by a fixed account."""

    def __init__(self, contract: Contract, sender: str):
        self._contract = contract
        self._sender = sender

    @property
    def sender(self) -> str:
        return self._sender

    def __getattr__(self, name: str):
        attr = getattr(type(self._contract), name, None)
        if is_external(attr):
            contract, sender = self._contract, self._sender

            def send(*args, value: int = 0):
                return contract.chain.transact(contract, attr, args, sender=sender, value=value)

            send.__name__ = name
            return send
        return getattr(self._contract, name)

    def __repr__(self) -> str:
        return f"<Connected {self._contract!r} as {self._sender}>"
