"""
nftgov Local Ledger

Provides:
  - Chain / ChainError / TransactionReverted                 (ledger.py)
  - Contract / external / require / TransactionReceipt / EventLog (contract.py)
"""

from .contract import (
    ConnectedContract,
    Contract,
    ContractInterface,
    EventLog,
    TransactionReceipt,
    external,
    require,
)
from .ledger import (
    CallFrame,
    Chain,
    ChainError,
    TransactionReverted,
)

__all__ = [
    # Contracts
    "ConnectedContract",
    "Contract",
    "ContractInterface",
    "EventLog",
    "TransactionReceipt",
    "external",
    "require",
    # Ledger
    "CallFrame",
    "Chain",
    "ChainError",
    "TransactionReverted",
]
