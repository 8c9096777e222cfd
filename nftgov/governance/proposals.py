"""
Governance Proposals

Defines the proposal lifecycle states, the per-proposal core record and the
proposal id derivation:

    proposalId = uint256(keccak256(abi.encode(targets, values, calldatas, descriptionHash)))
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Sequence

from eth_utils import keccak

from ..crypto.abi import description_hash, encode_arguments
from ..crypto.address import normalize_address


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalState(IntEnum):
    """Lifecycle stage, in the governor's own numbering."""
    PENDING = 0     # Created, voting not started (snapshot block not reached)
    ACTIVE = 1      # Voting open until the deadline block
    CANCELED = 2    # Cancelled by the proposer before voting
    DEFEATED = 3    # Voting over, quorum or majority missing
    SUCCEEDED = 4   # Voting over, quorum met and for > against
    QUEUED = 5      # Timelocked (unused without a timelock extension)
    EXPIRED = 6     # Timelock grace passed (unused without a timelock extension)
    EXECUTED = 7    # Calls performed

    @property
    def label(self) -> str:
        return self.name.title()


EXECUTABLE_STATES = (ProposalState.SUCCEEDED, ProposalState.QUEUED)


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL ID
# ══════════════════════════════════════════════════════════════════════

def hash_proposal(
    targets: Sequence[Any],
    values: Sequence[int],
    calldatas: Sequence[bytes],
    description_hash_: bytes,
) -> int:
    """Deterministic proposal id; identical inputs always give the same id."""
    encoded = encode_arguments(
        ["address[]", "uint256[]", "bytes[]", "bytes32"],
        [
            [normalize_address(t) for t in targets],
            list(values),
            [bytes(c) for c in calldatas],
            bytes(description_hash_),
        ],
    )
    return int.from_bytes(keccak(encoded), "big")


# ══════════════════════════════════════════════════════════════════════
#  RECORDS
# ══════════════════════════════════════════════════════════════════════

@dataclass
class ProposalCore:
    """What the governor stores per proposal id."""
    proposer: str
    vote_start: int     # snapshot block; weights are read here
    vote_end: int       # deadline block; voting allowed up to and including it
    executed: bool = False
    canceled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposer": self.proposer,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
            "executed": self.executed,
            "canceled": self.canceled,
        }


@dataclass(frozen=True)
class ProposalCalls:
    """
    The four arrays a proposal is made of, plus its human description.

    Keeps propose() and execute() arguments in one place so the id computed
    at creation is the one used at execution.
    """
    targets: List[str]
    values: List[int]
    calldatas: List[bytes]
    description: str

    @property
    def description_hash(self) -> bytes:
        return description_hash(self.description)

    @property
    def proposal_id(self) -> int:
        return hash_proposal(self.targets, self.values, self.calldatas, self.description_hash)

    def propose_args(self) -> tuple:
        return (self.targets, self.values, self.calldatas, self.description)

    def execute_args(self) -> tuple:
        return (self.targets, self.values, self.calldatas, self.description_hash)

    def __repr__(self) -> str:
        return f"<ProposalCalls calls={len(self.targets)} '{self.description}'>"
