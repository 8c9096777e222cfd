"""
Single-owner access control shared by both tokens.

The owner lives in ``self.storage.owner`` so that it is snapshotted with the
rest of the contract state.
"""

from ..chain.contract import external, require
from ..constants import REVERT_NOT_OWNER, ZERO_ADDRESS
from ..crypto.address import normalize_address


class Ownable:
    """Mixin for :class:`~nftgov.chain.contract.Contract` subclasses."""

    def _transfer_ownership(self, new_owner: str):
        old = self.storage.owner
        self.storage.owner = new_owner
        self.emit("OwnershipTransferred", previousOwner=old, newOwner=new_owner)

    def _check_owner(self):
        require(self.storage.owner == self.msg_sender, REVERT_NOT_OWNER)

    def owner(self) -> str:
        return self.storage.owner

    @external("transferOwnership(address)")
    def transfer_ownership(self, new_owner):
        self._check_owner()
        new_owner = normalize_address(new_owner)
        require(new_owner != ZERO_ADDRESS, "Ownable: new owner is the zero address")
        self._transfer_ownership(new_owner)

    @external("renounceOwnership()")
    def renounce_ownership(self):
        self._check_owner()
        self._transfer_ownership(ZERO_ADDRESS)
