"""
Vote-weight NFT: ERC721 with checkpointed votes and delegation

Implements:
  - Owner-only safeMint with sequential token ids
  - transferFrom / approve / setApprovalForAll
  - 1 NFT = 1 vote, effective only once the holder delegates (self included)
  - Per-block checkpoints of delegate votes and total supply, so a governor
    can read weights at a proposal's snapshot block
"""

import operator
from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..chain.contract import Contract, external, require
from ..constants import VOTE_TOKEN_NAME, VOTE_TOKEN_SYMBOL, ZERO_ADDRESS
from ..crypto.address import normalize_address
from ..logger import get_logger
from .checkpoints import Checkpoints
from .ownable import Ownable

logger = get_logger(__name__)

REVERT_BLOCK_NOT_MINED = "Votes: block not yet mined"


@dataclass
class VoteNFTStorage:
    name: str = ""
    symbol: str = ""
    owner: str = ZERO_ADDRESS
    next_token_id: int = 0
    owners: Dict[int, str] = field(default_factory=dict)
    balances: Dict[str, int] = field(default_factory=dict)
    token_approvals: Dict[int, str] = field(default_factory=dict)
    operator_approvals: Dict[Tuple[str, str], bool] = field(default_factory=dict)
    delegates: Dict[str, str] = field(default_factory=dict)
    delegate_checkpoints: Dict[str, Checkpoints] = field(default_factory=dict)
    total_checkpoints: Checkpoints = field(default_factory=Checkpoints)


class VoteNFT(Ownable, Contract):
    """
    ERC721 voting token.

    Voting weight follows delegation, not ownership: an address that holds
    NFTs but never called ``delegate`` has zero votes.
    """

    storage_cls = VoteNFTStorage

    def constructor(self, name: str = VOTE_TOKEN_NAME, symbol: str = VOTE_TOKEN_SYMBOL):
        self.storage.name = name
        self.storage.symbol = symbol
        self._transfer_ownership(self.msg_sender)

    # ── Read-only views ───────────────────────────────────────────────

    def name(self) -> str:
        return self.storage.name

    def symbol(self) -> str:
        return self.storage.symbol

    def balance_of(self, owner) -> int:
        owner = normalize_address(owner)
        require(owner != ZERO_ADDRESS, "ERC721: address zero is not a valid owner")
        return self.storage.balances.get(owner, 0)

    def owner_of(self, token_id: int) -> str:
        owner = self.storage.owners.get(token_id)
        require(owner is not None, "ERC721: invalid token ID")
        return owner

    def total_supply(self) -> int:
        return self.storage.total_checkpoints.latest()

    def get_approved(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self.storage.token_approvals.get(token_id, ZERO_ADDRESS)

    def is_approved_for_all(self, owner, operator_) -> bool:
        key = (normalize_address(owner), normalize_address(operator_))
        return self.storage.operator_approvals.get(key, False)

    # ── Votes views ───────────────────────────────────────────────────

    def delegates(self, account) -> str:
        return self.storage.delegates.get(normalize_address(account), ZERO_ADDRESS)

    def get_votes(self, account) -> int:
        ckpts = self.storage.delegate_checkpoints.get(normalize_address(account))
        return ckpts.latest() if ckpts else 0

    def get_past_votes(self, account, block_number: int) -> int:
        require(block_number < self.block_number, REVERT_BLOCK_NOT_MINED)
        ckpts = self.storage.delegate_checkpoints.get(normalize_address(account))
        return ckpts.upper_lookup(block_number) if ckpts else 0

    def get_past_total_supply(self, block_number: int) -> int:
        require(block_number < self.block_number, REVERT_BLOCK_NOT_MINED)
        return self.storage.total_checkpoints.upper_lookup(block_number)

    def num_checkpoints(self, account) -> int:
        ckpts = self.storage.delegate_checkpoints.get(normalize_address(account))
        return len(ckpts) if ckpts else 0

    def checkpoints(self, account, position: int) -> Tuple[int, int]:
        ckpts = self.storage.delegate_checkpoints.get(normalize_address(account))
        require(ckpts is not None and 0 <= position < len(ckpts), "Votes: checkpoint out of range")
        return ckpts.at(position)

    # ── Minting ───────────────────────────────────────────────────────

    @external("safeMint(address)")
    def safe_mint(self, to) -> int:
        """Mint the next token id to *to* (owner only)."""
        self._check_owner()
        to = normalize_address(to)
        token_id = self.storage.next_token_id
        self.storage.next_token_id += 1
        self._mint(to, token_id)
        self._check_on_erc721_received(ZERO_ADDRESS, to, token_id)
        return token_id

    def _mint(self, to: str, token_id: int):
        require(to != ZERO_ADDRESS, "ERC721: mint to the zero address")
        require(token_id not in self.storage.owners, "ERC721: token already minted")
        self.storage.balances[to] = self.storage.balances.get(to, 0) + 1
        self.storage.owners[token_id] = to
        self.emit("Transfer", **{"from": ZERO_ADDRESS, "to": to, "tokenId": token_id})
        self._after_token_transfer(ZERO_ADDRESS, to, 1)

    def _check_on_erc721_received(self, from_: str, to: str, token_id: int):
        receiver = self.chain.get_contract(to)
        if receiver is None:
            return
        hook = getattr(receiver, "on_erc721_received", None)
        require(hook is not None, "ERC721: transfer to non ERC721Receiver implementer")
        hook(self.msg_sender, from_, token_id)

    # ── Transfers & approvals ─────────────────────────────────────────

    def _is_approved_or_owner(self, spender: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            spender == owner
            or self.is_approved_for_all(owner, spender)
            or self.storage.token_approvals.get(token_id) == spender
        )

    @external("transferFrom(address,address,uint256)")
    def transfer_from(self, from_, to, token_id: int):
        require(
            self._is_approved_or_owner(self.msg_sender, token_id),
            "ERC721: caller is not token owner or approved",
        )
        from_ = normalize_address(from_)
        to = normalize_address(to)
        require(self.owner_of(token_id) == from_, "ERC721: transfer from incorrect owner")
        require(to != ZERO_ADDRESS, "ERC721: transfer to the zero address")

        self.storage.token_approvals.pop(token_id, None)
        self.storage.balances[from_] -= 1
        self.storage.balances[to] = self.storage.balances.get(to, 0) + 1
        self.storage.owners[token_id] = to
        self.emit("Transfer", **{"from": from_, "to": to, "tokenId": token_id})
        self._after_token_transfer(from_, to, 1)

    @external("approve(address,uint256)")
    def approve(self, to, token_id: int):
        to = normalize_address(to)
        owner = self.owner_of(token_id)
        require(to != owner, "ERC721: approval to current owner")
        require(
            self.msg_sender == owner or self.is_approved_for_all(owner, self.msg_sender),
            "ERC721: approve caller is not token owner or approved for all",
        )
        self.storage.token_approvals[token_id] = to
        self.emit("Approval", owner=owner, approved=to, tokenId=token_id)

    @external("setApprovalForAll(address,bool)")
    def set_approval_for_all(self, operator_, approved: bool):
        operator_ = normalize_address(operator_)
        require(self.msg_sender != operator_, "ERC721: approve to caller")
        self.storage.operator_approvals[(self.msg_sender, operator_)] = bool(approved)
        self.emit("ApprovalForAll", owner=self.msg_sender, operator=operator_, approved=bool(approved))

    # ── Delegation ────────────────────────────────────────────────────

    @external("delegate(address)")
    def delegate(self, delegatee):
        """Assign the sender's voting weight to *delegatee* (may be itself)."""
        account = self.msg_sender
        delegatee = normalize_address(delegatee)
        old = self.delegates(account)
        self.storage.delegates[account] = delegatee
        self.emit("DelegateChanged", delegator=account, fromDelegate=old, toDelegate=delegatee)
        self._move_delegate_votes(old, delegatee, self.storage.balances.get(account, 0))
        logger.debug(f"{account} delegated to {delegatee} at block #{self.block_number}")

    def _after_token_transfer(self, from_: str, to: str, amount: int):
        if from_ == ZERO_ADDRESS:
            self.storage.total_checkpoints.apply(self.block_number, operator.add, amount)
        if to == ZERO_ADDRESS:
            self.storage.total_checkpoints.apply(self.block_number, operator.sub, amount)
        self._move_delegate_votes(self.delegates(from_), self.delegates(to), amount)

    def _move_delegate_votes(self, src: str, dst: str, amount: int):
        if src == dst or amount <= 0:
            return
        if src != ZERO_ADDRESS:
            old, new = self._delegate_checkpoints(src).apply(self.block_number, operator.sub, amount)
            self.emit("DelegateVotesChanged", delegate=src, previousBalance=old, newBalance=new)
        if dst != ZERO_ADDRESS:
            old, new = self._delegate_checkpoints(dst).apply(self.block_number, operator.add, amount)
            self.emit("DelegateVotesChanged", delegate=dst, previousBalance=old, newBalance=new)

    def _delegate_checkpoints(self, account: str) -> Checkpoints:
        return self.storage.delegate_checkpoints.setdefault(account, Checkpoints())
