"""
Proposal Workflow: the deploy → propose → vote → execute driver

Each step is one call the integration suite would otherwise repeat inline:

  1. distribute()            mint each labelled signer its NFT allocation
  2. self_delegate()         voters delegate to themselves
  3. propose(calls)          submit, read the id from ProposalCreated
  4. advance_voting_delay()  mine past the snapshot block
  5. cast_votes({...})       label → support code
  6. advance_voting_period() mine the full (or a fraction of the) period
  7. execute() / try_execute()
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from ..chain.contract import TransactionReceipt
from ..chain.ledger import TransactionReverted
from ..governance.proposals import ProposalCalls, ProposalState
from ..logger import get_logger
from .deployment import GovernanceDeployment
from .errors import HarnessError

logger = get_logger(__name__)


def hex_blocks(blocks: int) -> str:
    """Block count as the hex quantity hardhat_mine expects (``45818`` → ``"0xb2fa"``)."""
    return "0x" + format(blocks, "x")


@dataclass
class ExecutionOutcome:
    """What an execution attempt did to the receiver's balance."""
    executed: bool
    balance_before: int
    balance_after: int
    revert_reason: Optional[str] = None
    receipt: Optional[TransactionReceipt] = None

    @property
    def balance_delta(self) -> int:
        return self.balance_after - self.balance_before

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executed": self.executed,
            "balanceBefore": str(self.balance_before),
            "balanceAfter": str(self.balance_after),
            "revertReason": self.revert_reason,
            "blockNumber": self.receipt.block_number if self.receipt else None,
        }


@dataclass
class ProposalWorkflow:
    """Drives one proposal through the governor on a deployed set of contracts."""
    deployment: GovernanceDeployment
    proposal_id: Optional[int] = None
    calls: Optional[ProposalCalls] = None
    vote_receipts: Dict[str, TransactionReceipt] = field(default_factory=dict)

    @property
    def chain(self):
        return self.deployment.chain

    @property
    def scenario_config(self):
        return self.deployment.config.scenario

    @property
    def voter_labels(self):
        """Every allocation label except the deployer's."""
        return self.scenario_config.labels[1:]

    # ── Setup ─────────────────────────────────────────────────────────

    def mint_nfts(self, label: str, count: int):
        """Mint *count* vote NFTs to *label*, one transaction each."""
        to = self.deployment.signer(label).address
        for _ in range(count):
            self.deployment.vote_token.safe_mint(to)

    def distribute(self):
        for label, count in self.scenario_config.allocations:
            self.mint_nfts(label, count)
        logger.info(
            f"Distributed {self.scenario_config.total_supply} NFTs "
            f"across {len(self.scenario_config.allocations)} holders"
        )

    def self_delegate(self, labels: Optional[Iterable[str]] = None):
        for label in labels if labels is not None else self.voter_labels:
            signer = self.deployment.signer(label)
            self.deployment.vote_token.connect(signer).delegate(signer.address)

    def setup(self) -> "ProposalWorkflow":
        self.distribute()
        self.self_delegate()
        return self

    # ── Proposal ──────────────────────────────────────────────────────

    def mint_proposal(
        self,
        receiver: Optional[str] = None,
        amount: Optional[int] = None,
        description: Optional[str] = None,
    ) -> ProposalCalls:
        """A single-call proposal minting *amount* of the governed token to *receiver*."""
        cfg = self.scenario_config
        token = self.deployment.token
        calldata = token.interface.encode_function_data(
            "mint", [receiver or cfg.receiver, amount if amount is not None else cfg.mint_amount]
        )
        return ProposalCalls(
            targets=[token.address],
            values=[0],
            calldatas=[calldata],
            description=description or cfg.description,
        )

    def propose(self, calls: Optional[ProposalCalls] = None, proposer: Optional[str] = None) -> int:
        calls = calls or self.mint_proposal()
        governor = self.deployment.governor
        if proposer is not None:
            governor = governor.connect(self.deployment.signer(proposer))

        receipt = governor.propose(*calls.propose_args())
        event = receipt.find_event("ProposalCreated")
        if event is None:
            raise HarnessError("propose() did not emit ProposalCreated")
        if event["proposalId"] != calls.proposal_id:
            raise HarnessError(
                f"ProposalCreated id {event['proposalId']} does not match "
                f"hash_proposal {calls.proposal_id}"
            )

        self.calls = calls
        self.proposal_id = event["proposalId"]
        self.vote_receipts = {}
        return self.proposal_id

    def _require_proposal(self) -> int:
        if self.proposal_id is None:
            raise HarnessError("No proposal has been submitted yet")
        return self.proposal_id

    def state(self) -> ProposalState:
        return self.deployment.governor.state(self._require_proposal())

    # ── Time ──────────────────────────────────────────────────────────

    def advance(self, blocks: int) -> int:
        return self.chain.mine(hex_blocks(blocks))

    def advance_voting_delay(self) -> int:
        return self.advance(max(1, self.deployment.governor.voting_delay()))

    def advance_voting_period(self, divisor: int = 1) -> int:
        """Mine ``voting_period // divisor`` blocks (divisor 2 = half the period)."""
        return self.advance(self.deployment.governor.voting_period() // divisor)

    # ── Voting ────────────────────────────────────────────────────────

    def cast_vote(self, label: str, support: int) -> TransactionReceipt:
        proposal_id = self._require_proposal()
        signer = self.deployment.signer(label)
        receipt = self.deployment.governor.connect(signer).cast_vote(proposal_id, support)
        self.vote_receipts[label] = receipt
        return receipt

    def cast_votes(self, votes: Mapping[str, int]) -> Dict[str, TransactionReceipt]:
        return {label: self.cast_vote(label, support) for label, support in votes.items()}

    # ── Execution ─────────────────────────────────────────────────────

    def receiver_balance(self) -> int:
        return self.deployment.token.balance_of(self.scenario_config.receiver)

    def execute(self) -> TransactionReceipt:
        self._require_proposal()
        return self.deployment.governor.execute(*self.calls.execute_args())

    def try_execute(self) -> ExecutionOutcome:
        """Attempt execution and record the receiver's balance around it."""
        before = self.receiver_balance()
        try:
            receipt = self.execute()
        except TransactionReverted as e:
            logger.info(f"Execution of proposal {self.proposal_id} reverted: {e.reason}")
            return ExecutionOutcome(
                executed=False,
                balance_before=before,
                balance_after=self.receiver_balance(),
                revert_reason=e.reason,
            )
        return ExecutionOutcome(
            executed=True,
            balance_before=before,
            balance_after=self.receiver_balance(),
            receipt=receipt,
        )
