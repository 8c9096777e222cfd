"""
nftgov Tokens

Provides:
  - VoteNFT       : ERC721 vote-weight token with delegation and checkpoints
  - GovernedToken : ERC20 mintable only by its owner (the governor)
  - Checkpoints   : per-block history used for past-vote lookups
"""

from .checkpoints import Checkpoints
from .mintable import GovernedToken
from .ownable import Ownable
from .vote_nft import VoteNFT

__all__ = [
    "Checkpoints",
    "GovernedToken",
    "Ownable",
    "VoteNFT",
]
