"""
Deployment of the three governance contracts.

Order matters: the governor needs the vote token's address and the mintable
token needs the governor's, so they are deployed vote token → governor →
mintable token, each in its own block.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..chain.ledger import Chain
from ..config.loader import HarnessConfig
from ..crypto.address import Account
from ..governance.governor import Governor
from ..logger import get_logger
from ..tokens.mintable import GovernedToken
from ..tokens.vote_nft import VoteNFT
from .errors import HarnessError

logger = get_logger(__name__)


@dataclass
class GovernanceDeployment:
    """The deployed contracts plus the labelled signers that hold NFTs."""
    chain: Chain
    config: HarnessConfig
    vote_token: VoteNFT
    governor: Governor
    token: GovernedToken
    signers: Dict[str, Account]

    @property
    def deployer(self) -> Account:
        return self.chain.default_account

    def signer(self, label: str) -> Account:
        try:
            return self.signers[label]
        except KeyError:
            raise HarnessError(
                f"Unknown signer label {label!r}; known: {', '.join(self.signers)}"
            ) from None

    def addresses(self) -> Dict[str, str]:
        return {
            "voteToken": self.vote_token.address,
            "governor": self.governor.address,
            "token": self.token.address,
        }


def deploy_governance(
    config: Optional[HarnessConfig] = None,
    chain: Optional[Chain] = None,
) -> GovernanceDeployment:
    """
    Deploy vote token, governor and mintable token from *config*.

    Allocation labels are bound to ledger accounts in order, so the first
    label is always the deployer (``accounts[0]``).
    """
    config = config or HarnessConfig()
    chain = chain or Chain(config.chain)

    labels = config.scenario.labels
    if len(labels) > len(chain.accounts):
        raise HarnessError(f"{len(labels)} signer labels but only {len(chain.accounts)} accounts")
    signers = {label: chain.accounts[i] for i, label in enumerate(labels)}

    tokens = config.tokens
    vote_token = chain.deploy(VoteNFT, tokens.vote_token_name, tokens.vote_token_symbol)
    governor = chain.deploy(Governor, vote_token.address, config.governor)
    token = chain.deploy(
        GovernedToken, governor.address, tokens.mintable_token_name, tokens.mintable_token_symbol
    )

    logger.info(
        f"Governance deployed: vote token {vote_token.address}, "
        f"governor {governor.address}, token {token.address}"
    )
    return GovernanceDeployment(
        chain=chain,
        config=config,
        vote_token=vote_token,
        governor=governor,
        token=token,
        signers=signers,
    )
