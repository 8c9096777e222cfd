"""
Vote NFT: minting, ownership, delegation and vote checkpoints.
"""

import pytest

from nftgov.chain import TransactionReverted
from nftgov.constants import REVERT_NOT_OWNER, ZERO_ADDRESS
from nftgov.exceptions import Revert
from nftgov.tokens import VoteNFT


def make_nft(chain, *args) -> VoteNFT:
    """Helper to deploy a vote NFT from the default account."""
    return chain.deploy(VoteNFT, *args)


def mint_many(nft, to, count):
    return [nft.safe_mint(to).return_value for _ in range(count)]


class TestVoteNFTDeploy:

    def test_metadata_and_owner(self, chain):
        nft = make_nft(chain)
        assert nft.name() == "MyNFT"
        assert nft.symbol() == "MNFT"
        assert nft.owner() == chain.default_account.address
        assert nft.total_supply() == 0

    def test_ownership_event(self, chain):
        nft = make_nft(chain)
        event = nft.deploy_receipt.find_event("OwnershipTransferred")
        assert event["previousOwner"] == ZERO_ADDRESS
        assert event["newOwner"] == chain.default_account.address


class TestSafeMint:

    def test_sequential_token_ids(self, chain):
        nft = make_nft(chain)
        alice = chain.accounts[1]
        assert mint_many(nft, alice, 3) == [0, 1, 2]
        assert nft.balance_of(alice) == 3
        assert nft.owner_of(2) == alice.address
        assert nft.total_supply() == 3

    def test_only_owner_mints(self, chain):
        nft = make_nft(chain)
        outsider = chain.accounts[1]
        with pytest.raises(TransactionReverted, match=REVERT_NOT_OWNER):
            nft.connect(outsider).safe_mint(outsider.address)
        assert nft.total_supply() == 0

    def test_mint_to_zero_address_reverts(self, chain):
        nft = make_nft(chain)
        with pytest.raises(TransactionReverted, match="ERC721: mint to the zero address"):
            nft.safe_mint(ZERO_ADDRESS)

    def test_mint_to_non_receiver_contract_reverts(self, chain):
        nft = make_nft(chain)
        with pytest.raises(TransactionReverted, match="ERC721: transfer to non ERC721Receiver implementer"):
            nft.safe_mint(nft.address)

    def test_each_mint_mines_a_block(self, chain):
        nft = make_nft(chain)
        start = chain.block_number
        mint_many(nft, chain.accounts[1], 5)
        assert chain.block_number == start + 5


class TestOwnershipViews:

    def test_balance_of_zero_address_reverts(self, chain):
        nft = make_nft(chain)
        with pytest.raises(Revert, match="ERC721: address zero is not a valid owner"):
            nft.balance_of(ZERO_ADDRESS)

    def test_owner_of_unminted_reverts(self, chain):
        nft = make_nft(chain)
        with pytest.raises(Revert, match="ERC721: invalid token ID"):
            nft.owner_of(0)


class TestTransfers:

    def test_owner_transfers(self, chain):
        nft = make_nft(chain)
        alice, bob = chain.accounts[1], chain.accounts[2]
        nft.safe_mint(alice)
        nft.connect(alice).transfer_from(alice.address, bob.address, 0)
        assert nft.owner_of(0) == bob.address
        assert nft.balance_of(alice) == 0

    def test_stranger_cannot_transfer(self, chain):
        nft = make_nft(chain)
        alice, bob = chain.accounts[1], chain.accounts[2]
        nft.safe_mint(alice)
        with pytest.raises(TransactionReverted, match="ERC721: caller is not token owner or approved"):
            nft.connect(bob).transfer_from(alice.address, bob.address, 0)

    def test_approved_spender_transfers(self, chain):
        nft = make_nft(chain)
        alice, bob, carol = chain.accounts[1:4]
        nft.safe_mint(alice)
        nft.connect(alice).approve(bob.address, 0)
        assert nft.get_approved(0) == bob.address

        nft.connect(bob).transfer_from(alice.address, carol.address, 0)
        assert nft.owner_of(0) == carol.address
        assert nft.get_approved(0) == ZERO_ADDRESS

    def test_operator_transfers(self, chain):
        nft = make_nft(chain)
        alice, bob = chain.accounts[1], chain.accounts[2]
        nft.safe_mint(alice)
        nft.connect(alice).set_approval_for_all(bob.address, True)
        assert nft.is_approved_for_all(alice, bob) is True
        nft.connect(bob).transfer_from(alice.address, bob.address, 0)
        assert nft.owner_of(0) == bob.address


class TestDelegation:

    def test_no_votes_until_delegated(self, chain):
        nft = make_nft(chain)
        alice = chain.accounts[1]
        mint_many(nft, alice, 2)
        assert nft.get_votes(alice) == 0
        assert nft.delegates(alice) == ZERO_ADDRESS

        receipt = nft.connect(alice).delegate(alice.address)
        assert nft.get_votes(alice) == 2
        assert nft.delegates(alice) == alice.address
        changed = receipt.find_event("DelegateVotesChanged")
        assert (changed["previousBalance"], changed["newBalance"]) == (0, 2)

    def test_delegate_to_other(self, chain):
        nft = make_nft(chain)
        alice, bob = chain.accounts[1], chain.accounts[2]
        nft.safe_mint(alice)
        nft.connect(alice).delegate(bob.address)
        assert nft.get_votes(bob) == 1
        assert nft.get_votes(alice) == 0

    def test_transfer_moves_delegated_votes(self, chain):
        nft = make_nft(chain)
        alice, bob = chain.accounts[1], chain.accounts[2]
        mint_many(nft, alice, 2)
        nft.connect(alice).delegate(alice.address)
        nft.connect(bob).delegate(bob.address)

        nft.connect(alice).transfer_from(alice.address, bob.address, 1)
        assert nft.get_votes(alice) == 1
        assert nft.get_votes(bob) == 1

    def test_mint_after_delegation_adds_votes(self, chain):
        nft = make_nft(chain)
        alice = chain.accounts[1]
        nft.connect(alice).delegate(alice.address)
        mint_many(nft, alice, 3)
        assert nft.get_votes(alice) == 3


class TestCheckpoints:

    def test_past_votes_follow_blocks(self, chain):
        nft = make_nft(chain)
        alice = chain.accounts[1]
        nft.safe_mint(alice)
        delegated_at = nft.connect(alice).delegate(alice.address).block_number
        second_at = nft.safe_mint(alice).block_number

        assert nft.get_past_votes(alice, delegated_at - 1) == 0
        assert nft.get_past_votes(alice, delegated_at) == 1
        assert nft.get_past_votes(alice, second_at) == 2
        assert nft.num_checkpoints(alice) == 2
        assert nft.checkpoints(alice, 0) == (delegated_at, 1)

    def test_past_total_supply(self, chain):
        nft = make_nft(chain)
        first = nft.safe_mint(chain.accounts[1]).block_number
        nft.safe_mint(chain.accounts[2])
        assert nft.get_past_total_supply(first - 1) == 0
        assert nft.get_past_total_supply(first) == 1
        assert nft.get_past_total_supply(chain.block_number) == 2

    def test_current_block_not_yet_mined(self, chain):
        nft = make_nft(chain)
        pending = chain.block_number + 1
        with pytest.raises(Revert, match="Votes: block not yet mined"):
            nft.get_past_votes(chain.accounts[1], pending)
        with pytest.raises(Revert, match="Votes: block not yet mined"):
            nft.get_past_total_supply(pending)
