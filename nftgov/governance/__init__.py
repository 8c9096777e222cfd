"""
nftgov Governance

Provides:
  - ProposalState / ProposalCore / ProposalCalls / hash_proposal  (proposals.py)
  - VoteType / ProposalVote                                       (voting.py)
  - Governor                                                      (governor.py)
"""

from .proposals import (
    EXECUTABLE_STATES,
    ProposalCalls,
    ProposalCore,
    ProposalState,
    hash_proposal,
)
from .voting import (
    ProposalVote,
    VoteType,
)
from .governor import Governor

__all__ = [
    # Proposals
    "EXECUTABLE_STATES",
    "ProposalCalls",
    "ProposalCore",
    "ProposalState",
    "hash_proposal",
    # Voting
    "ProposalVote",
    "VoteType",
    # Governor
    "Governor",
]
