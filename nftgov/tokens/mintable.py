"""
Governed ERC20: fungible token whose only minter is its owner, the governor.

Minting therefore happens exclusively through an executed proposal.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..chain.contract import Contract, external, require
from ..constants import (
    MINTABLE_TOKEN_DECIMALS,
    MINTABLE_TOKEN_NAME,
    MINTABLE_TOKEN_SYMBOL,
    ZERO_ADDRESS,
)
from ..crypto.address import normalize_address
from ..logger import get_logger
from .ownable import Ownable

logger = get_logger(__name__)


@dataclass
class GovernedTokenStorage:
    name: str = ""
    symbol: str = ""
    owner: str = ZERO_ADDRESS
    total_supply: int = 0
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str], int] = field(default_factory=dict)


class GovernedToken(Ownable, Contract):
    """
    ERC20 with 18 decimals, owned by *governor* from deployment on.

    ERC-20 views take and return integer base units (wei-style).
    """

    storage_cls = GovernedTokenStorage

    def constructor(
        self,
        governor,
        name: str = MINTABLE_TOKEN_NAME,
        symbol: str = MINTABLE_TOKEN_SYMBOL,
    ):
        self.storage.name = name
        self.storage.symbol = symbol
        self._transfer_ownership(self.msg_sender)
        self._transfer_ownership(normalize_address(governor))

    # ── Read-only views ───────────────────────────────────────────────

    def name(self) -> str:
        return self.storage.name

    def symbol(self) -> str:
        return self.storage.symbol

    def decimals(self) -> int:
        return MINTABLE_TOKEN_DECIMALS

    def total_supply(self) -> int:
        return self.storage.total_supply

    def balance_of(self, account) -> int:
        return self.storage.balances.get(normalize_address(account), 0)

    def allowance(self, owner, spender) -> int:
        return self.storage.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    # ── Mint ──────────────────────────────────────────────────────────

    @external("mint(address,uint256)")
    def mint(self, to, amount: int):
        self._check_owner()
        to = normalize_address(to)
        require(to != ZERO_ADDRESS, "ERC20: mint to the zero address")
        self.storage.total_supply += amount
        self.storage.balances[to] = self.storage.balances.get(to, 0) + amount
        self.emit("Transfer", **{"from": ZERO_ADDRESS, "to": to, "value": amount})
        logger.info(f"Minted {amount} {self.storage.symbol} → {to}")

    # ── Transfers ─────────────────────────────────────────────────────

    def _transfer(self, from_: str, to: str, amount: int):
        require(from_ != ZERO_ADDRESS, "ERC20: transfer from the zero address")
        require(to != ZERO_ADDRESS, "ERC20: transfer to the zero address")
        bal = self.storage.balances.get(from_, 0)
        require(bal >= amount, "ERC20: transfer amount exceeds balance")
        self.storage.balances[from_] = bal - amount
        self.storage.balances[to] = self.storage.balances.get(to, 0) + amount
        self.emit("Transfer", **{"from": from_, "to": to, "value": amount})

    @external("transfer(address,uint256)")
    def transfer(self, to, amount: int) -> bool:
        self._transfer(self.msg_sender, normalize_address(to), amount)
        return True

    @external("approve(address,uint256)")
    def approve(self, spender, amount: int) -> bool:
        spender = normalize_address(spender)
        require(spender != ZERO_ADDRESS, "ERC20: approve to the zero address")
        self.storage.allowances[(self.msg_sender, spender)] = amount
        self.emit("Approval", owner=self.msg_sender, spender=spender, value=amount)
        return True

    @external("transferFrom(address,address,uint256)")
    def transfer_from(self, from_, to, amount: int) -> bool:
        from_ = normalize_address(from_)
        key = (from_, self.msg_sender)
        allowed = self.storage.allowances.get(key, 0)
        require(allowed >= amount, "ERC20: insufficient allowance")
        self.storage.allowances[key] = allowed - amount
        self._transfer(from_, normalize_address(to), amount)
        return True
