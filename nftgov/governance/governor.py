"""
Token-Weighted Governor

Implements:
  - propose / cancel / execute over (targets, values, calldatas, description)
  - Block-based lifecycle: Pending → Active → Succeeded | Defeated → Executed
  - Voting weight read from the vote token at the proposal's snapshot block
  - Quorum as a fraction of the vote token's past total supply
  - Self-governed settings (quorum numerator, delay, period, threshold),
    changeable only through an executed proposal
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple, Union

from eth_utils import keccak, to_bytes

from ..chain.contract import Contract, external, require
from ..config.loader import GovernorConfig
from ..constants import (
    GOVERNOR_COUNTING_MODE,
    GOVERNOR_QUORUM_DENOMINATOR,
    GOVERNOR_VERSION,
    REVERT_NOT_SUCCESSFUL,
    REVERT_UNKNOWN_PROPOSAL,
    REVERT_VOTE_NOT_ACTIVE,
    ZERO_ADDRESS,
)
from ..crypto.address import normalize_address
from ..exceptions import Revert
from ..logger import get_logger
from ..tokens.checkpoints import Checkpoints
from .proposals import (
    EXECUTABLE_STATES,
    ProposalCore,
    ProposalState,
    hash_proposal,
)
from .voting import ProposalVote

logger = get_logger(__name__)

REVERT_ONLY_GOVERNANCE = "Governor: onlyGovernance"
REVERT_CALL_WITHOUT_MESSAGE = "Governor: call reverted without message"


@dataclass
class GovernorStorage:
    name: str = ""
    token: str = ZERO_ADDRESS
    voting_delay: int = 0
    voting_period: int = 0
    proposal_threshold: int = 0
    quorum_numerator_history: Checkpoints = field(default_factory=Checkpoints)
    proposals: Dict[int, ProposalCore] = field(default_factory=dict)
    votes: Dict[int, ProposalVote] = field(default_factory=dict)


def _as_bytes32(value: Union[bytes, str]) -> bytes:
    raw = to_bytes(hexstr=value) if isinstance(value, str) else bytes(value)
    if len(raw) != 32:
        raise Revert(None)
    return raw


class Governor(Contract):
    """
    Governor voting with a checkpointed vote token.

    Deployed with the vote token's address; every numeric setting comes from
    a :class:`GovernorConfig` (defaults: delay 1 block, period 45818 blocks,
    threshold 0, quorum 5%).
    """

    storage_cls = GovernorStorage
    accepts_ether = True

    COUNTING_MODE = GOVERNOR_COUNTING_MODE

    def constructor(self, token, config: Optional[GovernorConfig] = None):
        config = config or GovernorConfig()
        self.storage.name = config.name
        self.storage.token = normalize_address(token)
        self._set_voting_delay(config.voting_delay)
        self._set_voting_period(config.voting_period)
        self._set_proposal_threshold(config.proposal_threshold)
        self._update_quorum_numerator(config.quorum_numerator)

    # ── Settings views ────────────────────────────────────────────────

    def name(self) -> str:
        return self.storage.name

    def version(self) -> str:
        return GOVERNOR_VERSION

    def token(self):
        return self.chain.get_contract(self.storage.token)

    def voting_delay(self) -> int:
        return self.storage.voting_delay

    def voting_period(self) -> int:
        return self.storage.voting_period

    def proposal_threshold(self) -> int:
        return self.storage.proposal_threshold

    def quorum_denominator(self) -> int:
        return GOVERNOR_QUORUM_DENOMINATOR

    def quorum_numerator(self, block_number: Optional[int] = None) -> int:
        history = self.storage.quorum_numerator_history
        if block_number is None:
            return history.latest()
        return history.upper_lookup(block_number)

    def quorum(self, block_number: int) -> int:
        """Votes needed at *block_number*: past supply × numerator / denominator."""
        supply = self.token().get_past_total_supply(block_number)
        return supply * self.quorum_numerator(block_number) // self.quorum_denominator()

    def get_votes(self, account, block_number: int) -> int:
        return self.token().get_past_votes(account, block_number)

    # ── Proposal views ────────────────────────────────────────────────

    def hash_proposal(self, targets, values, calldatas, description_hash) -> int:
        return hash_proposal(targets, values, calldatas, _as_bytes32(description_hash))

    def _core(self, proposal_id: int) -> ProposalCore:
        core = self.storage.proposals.get(proposal_id)
        require(core is not None, REVERT_UNKNOWN_PROPOSAL)
        return core

    def _tally(self, proposal_id: int) -> ProposalVote:
        return self.storage.votes.setdefault(proposal_id, ProposalVote())

    def proposal_snapshot(self, proposal_id: int) -> int:
        core = self.storage.proposals.get(proposal_id)
        return core.vote_start if core else 0

    def proposal_deadline(self, proposal_id: int) -> int:
        core = self.storage.proposals.get(proposal_id)
        return core.vote_end if core else 0

    def proposal_proposer(self, proposal_id: int) -> str:
        core = self.storage.proposals.get(proposal_id)
        return core.proposer if core else ZERO_ADDRESS

    def proposal_votes(self, proposal_id: int) -> Tuple[int, int, int]:
        """(against, for, abstain)"""
        tally = self.storage.votes.get(proposal_id)
        return tally.as_tuple() if tally else (0, 0, 0)

    def has_voted(self, proposal_id: int, account) -> bool:
        tally = self.storage.votes.get(proposal_id)
        return bool(tally) and normalize_address(account) in tally.has_voted

    def _votes_of(self, proposal_id: int) -> ProposalVote:
        return self.storage.votes.get(proposal_id, ProposalVote())

    def _quorum_reached(self, proposal_id: int) -> bool:
        return self._votes_of(proposal_id).quorum_reached(self.quorum(self.proposal_snapshot(proposal_id)))

    def _vote_succeeded(self, proposal_id: int) -> bool:
        return self._votes_of(proposal_id).vote_succeeded

    def state(self, proposal_id: int) -> ProposalState:
        core = self._core(proposal_id)

        if core.executed:
            return ProposalState.EXECUTED
        if core.canceled:
            return ProposalState.CANCELED

        current = self.block_number
        if core.vote_start >= current:
            return ProposalState.PENDING
        if core.vote_end >= current:
            return ProposalState.ACTIVE

        if self._quorum_reached(proposal_id) and self._vote_succeeded(proposal_id):
            return ProposalState.SUCCEEDED
        return ProposalState.DEFEATED

    # ── Propose ───────────────────────────────────────────────────────

    @external("propose(address[],uint256[],bytes[],string)")
    def propose(
        self,
        targets: Sequence,
        values: Sequence[int],
        calldatas: Sequence[bytes],
        description: str,
    ) -> int:
        proposer = self.msg_sender
        require(
            self.get_votes(proposer, self.block_number - 1) >= self.proposal_threshold(),
            "Governor: proposer votes below proposal threshold",
        )

        targets = [normalize_address(t) for t in targets]
        values = list(values)
        calldatas = [bytes(c) for c in calldatas]
        proposal_id = hash_proposal(targets, values, calldatas, keccak(text=description))

        require(
            len(targets) == len(values) == len(calldatas),
            "Governor: invalid proposal length",
        )
        require(len(targets) > 0, "Governor: empty proposal")
        require(proposal_id not in self.storage.proposals, "Governor: proposal already exists")

        snapshot = self.block_number + self.voting_delay()
        deadline = snapshot + self.voting_period()
        self.storage.proposals[proposal_id] = ProposalCore(
            proposer=proposer,
            vote_start=snapshot,
            vote_end=deadline,
        )

        self.emit(
            "ProposalCreated",
            proposalId=proposal_id,
            proposer=proposer,
            targets=targets,
            values=values,
            signatures=[""] * len(targets),
            calldatas=calldatas,
            startBlock=snapshot,
            endBlock=deadline,
            description=description,
        )
        logger.info(
            f"proposal {proposal_id} created by {proposer}: '{description}' "
            f"(votes #{snapshot + 1}..#{deadline})"
        )
        return proposal_id

    # ── Vote ──────────────────────────────────────────────────────────

    @external("castVote(uint256,uint8)")
    def cast_vote(self, proposal_id: int, support: int) -> int:
        return self._cast_vote(proposal_id, self.msg_sender, support, "")

    @external("castVoteWithReason(uint256,uint8,string)")
    def cast_vote_with_reason(self, proposal_id: int, support: int, reason: str) -> int:
        return self._cast_vote(proposal_id, self.msg_sender, support, reason)

    def _cast_vote(self, proposal_id: int, account: str, support: int, reason: str) -> int:
        require(self.state(proposal_id) == ProposalState.ACTIVE, REVERT_VOTE_NOT_ACTIVE)

        weight = self.get_votes(account, self.proposal_snapshot(proposal_id))
        self._tally(proposal_id).count(account, support, weight)

        self.emit(
            "VoteCast",
            voter=account,
            proposalId=proposal_id,
            support=support,
            weight=weight,
            reason=reason,
        )
        logger.info(f"Vote: {account} → support={support} weight={weight} on proposal {proposal_id}")
        return weight

    # ── Execute / cancel ──────────────────────────────────────────────

    @external("execute(address[],uint256[],bytes[],bytes32)", payable=True)
    def execute(self, targets, values, calldatas, description_hash) -> int:
        proposal_id = self.hash_proposal(targets, values, calldatas, description_hash)

        status = self.state(proposal_id)
        require(status in EXECUTABLE_STATES, REVERT_NOT_SUCCESSFUL)

        self.storage.proposals[proposal_id].executed = True
        self.emit("ProposalExecuted", proposalId=proposal_id)

        for target, value, calldata in zip(targets, values, calldatas):
            require(
                self.chain.balance_of(self.address) >= value,
                "Address: insufficient balance for call",
            )
            try:
                self.chain.call(target, calldata, value)
            except Revert as e:
                raise Revert(e.reason or REVERT_CALL_WITHOUT_MESSAGE) from e

        logger.info(f"proposal {proposal_id} Executed ({len(targets)} call(s))")
        return proposal_id

    @external("cancel(address[],uint256[],bytes[],bytes32)")
    def cancel(self, targets, values, calldatas, description_hash) -> int:
        """Withdraw a proposal; only its proposer, only while Pending."""
        proposal_id = self.hash_proposal(targets, values, calldatas, description_hash)
        require(self.state(proposal_id) == ProposalState.PENDING, "Governor: too late to cancel")
        require(
            self.msg_sender == self.storage.proposals[proposal_id].proposer,
            "Governor: only proposer can cancel",
        )
        self.storage.proposals[proposal_id].canceled = True
        self.emit("ProposalCanceled", proposalId=proposal_id)
        logger.info(f"proposal {proposal_id} Canceled")
        return proposal_id

    # ── Governance-only settings ──────────────────────────────────────

    def _only_governance(self):
        require(self.msg_sender == self.address, REVERT_ONLY_GOVERNANCE)

    @external("updateQuorumNumerator(uint256)")
    def update_quorum_numerator(self, new_numerator: int):
        self._only_governance()
        self._update_quorum_numerator(new_numerator)

    @external("setVotingDelay(uint256)")
    def set_voting_delay(self, new_delay: int):
        self._only_governance()
        self._set_voting_delay(new_delay)

    @external("setVotingPeriod(uint256)")
    def set_voting_period(self, new_period: int):
        self._only_governance()
        self._set_voting_period(new_period)

    @external("setProposalThreshold(uint256)")
    def set_proposal_threshold(self, new_threshold: int):
        self._only_governance()
        self._set_proposal_threshold(new_threshold)

    def _update_quorum_numerator(self, new_numerator: int):
        require(
            new_numerator <= self.quorum_denominator(),
            "GovernorVotesQuorumFraction: quorumNumerator over quorumDenominator",
        )
        old, new = self.storage.quorum_numerator_history.push(self.block_number, new_numerator)
        self.emit("QuorumNumeratorUpdated", oldQuorumNumerator=old, newQuorumNumerator=new)

    def _set_voting_delay(self, new_delay: int):
        self.emit("VotingDelaySet", oldVotingDelay=self.storage.voting_delay, newVotingDelay=new_delay)
        self.storage.voting_delay = new_delay

    def _set_voting_period(self, new_period: int):
        require(new_period > 0, "GovernorSettings: voting period too low")
        self.emit("VotingPeriodSet", oldVotingPeriod=self.storage.voting_period, newVotingPeriod=new_period)
        self.storage.voting_period = new_period

    def _set_proposal_threshold(self, new_threshold: int):
        self.emit(
            "ProposalThresholdSet",
            oldProposalThreshold=self.storage.proposal_threshold,
            newProposalThreshold=new_threshold,
        )
        self.storage.proposal_threshold = new_threshold
