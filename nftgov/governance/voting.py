"""
Simple vote counting

Implements:
  - Vote types: Against (0) / For (1) / Abstain (2)
  - One vote per account per proposal
  - Quorum: for + abstain must reach the quorum (against does not count)
  - Success: for strictly greater than against
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Set

from ..chain.contract import require
from ..constants import (
    REVERT_ALREADY_VOTED,
    REVERT_INVALID_SUPPORT,
    VOTE_ABSTAIN,
    VOTE_AGAINST,
    VOTE_FOR,
)
from ..exceptions import Revert


class VoteType(IntEnum):
    AGAINST = VOTE_AGAINST
    FOR = VOTE_FOR
    ABSTAIN = VOTE_ABSTAIN

    @classmethod
    def is_valid(cls, support: int) -> bool:
        return support in cls._value2member_map_


@dataclass
class ProposalVote:
    """Running tally for one proposal."""
    against_votes: int = 0
    for_votes: int = 0
    abstain_votes: int = 0
    has_voted: Set[str] = field(default_factory=set)

    def count(self, account: str, support: int, weight: int):
        require(account not in self.has_voted, REVERT_ALREADY_VOTED)
        self.has_voted.add(account)

        if support == VoteType.AGAINST:
            self.against_votes += weight
        elif support == VoteType.FOR:
            self.for_votes += weight
        elif support == VoteType.ABSTAIN:
            self.abstain_votes += weight
        else:
            raise Revert(REVERT_INVALID_SUPPORT)

    @property
    def quorum_votes(self) -> int:
        """Weight that counts toward quorum."""
        return self.for_votes + self.abstain_votes

    def quorum_reached(self, quorum: int) -> bool:
        return quorum <= self.quorum_votes

    @property
    def vote_succeeded(self) -> bool:
        return self.for_votes > self.against_votes

    def as_tuple(self):
        """(against, for, abstain), the order proposalVotes() returns."""
        return self.against_votes, self.for_votes, self.abstain_votes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "againstVotes": self.against_votes,
            "forVotes": self.for_votes,
            "abstainVotes": self.abstain_votes,
            "voters": len(self.has_voted),
        }
