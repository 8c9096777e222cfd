"""
Governor: proposal lifecycle, vote casting, execution rules and
self-governed settings.
"""

import pytest

from nftgov.chain import TransactionReverted
from nftgov.config import GovernorConfig, HarnessConfig
from nftgov.constants import (
    DEFAULT_DESCRIPTION,
    GOVERNOR_COUNTING_MODE,
    GOVERNOR_VOTING_DELAY_BLOCKS,
    GOVERNOR_VOTING_PERIOD_BLOCKS,
    REVERT_ALREADY_VOTED,
    REVERT_INVALID_SUPPORT,
    REVERT_NOT_SUCCESSFUL,
    REVERT_UNKNOWN_PROPOSAL,
    REVERT_VOTE_NOT_ACTIVE,
    VOTE_ABSTAIN,
    VOTE_AGAINST,
    VOTE_FOR,
)
from nftgov.crypto import description_hash
from nftgov.exceptions import Revert
from nftgov.governance import ProposalCalls, ProposalState
from nftgov.harness import ProposalWorkflow, prepare_deployment


ALL_FOR = {"addr1": VOTE_FOR, "addr2": VOTE_FOR, "addr3": VOTE_FOR}


def governor_calls(workflow, method, args, description):
    """A single-call proposal targeting the governor itself."""
    governor = workflow.deployment.governor
    return ProposalCalls(
        targets=[governor.address],
        values=[0],
        calldatas=[governor.interface.encode_function_data(method, args)],
        description=description,
    )


def pass_proposal(workflow, calls):
    """Propose *calls*, vote them through and mine past the deadline."""
    workflow.propose(calls)
    workflow.advance_voting_delay()
    workflow.cast_votes(ALL_FOR)
    workflow.advance_voting_period()


# ══════════════════════════════════════════════════════════════════════
#  SETTINGS
# ══════════════════════════════════════════════════════════════════════


class TestGovernorSettings:

    def test_defaults(self, deployment):
        governor = deployment.governor
        assert governor.name() == "MyGovernor"
        assert governor.version() == "1"
        assert governor.voting_delay() == GOVERNOR_VOTING_DELAY_BLOCKS
        assert governor.voting_period() == GOVERNOR_VOTING_PERIOD_BLOCKS
        assert governor.proposal_threshold() == 0
        assert governor.quorum_numerator() == 5
        assert governor.quorum_denominator() == 100
        assert governor.COUNTING_MODE == GOVERNOR_COUNTING_MODE

    def test_token_is_vote_nft(self, deployment):
        assert deployment.governor.token() is deployment.vote_token

    def test_governor_owns_mintable_token(self, deployment):
        assert deployment.token.owner() == deployment.governor.address


# ══════════════════════════════════════════════════════════════════════
#  PROPOSE
# ══════════════════════════════════════════════════════════════════════


class TestPropose:

    def test_proposal_created_event(self, workflow):
        calls = workflow.mint_proposal()
        receipt = workflow.deployment.governor.propose(*calls.propose_args())
        event = receipt.find_event("ProposalCreated")

        assert event["proposalId"] == calls.proposal_id
        assert event["proposer"] == workflow.deployment.deployer.address
        assert event["targets"] == [workflow.deployment.token.address]
        assert event["values"] == [0]
        assert event["signatures"] == [""]
        assert event["description"] == DEFAULT_DESCRIPTION
        assert event["startBlock"] == receipt.block_number + GOVERNOR_VOTING_DELAY_BLOCKS
        assert event["endBlock"] == event["startBlock"] + GOVERNOR_VOTING_PERIOD_BLOCKS

    def test_id_matches_hash_proposal(self, workflow):
        proposal_id = workflow.propose()
        calls = workflow.calls
        assert proposal_id == workflow.deployment.governor.hash_proposal(
            calls.targets, calls.values, calls.calldatas, description_hash(calls.description)
        )

    def test_snapshot_deadline_proposer(self, workflow):
        proposal_id = workflow.propose()
        governor = workflow.deployment.governor
        proposed_at = workflow.chain.block_number

        assert governor.proposal_snapshot(proposal_id) == proposed_at + 1
        assert governor.proposal_deadline(proposal_id) == proposed_at + 1 + GOVERNOR_VOTING_PERIOD_BLOCKS
        assert governor.proposal_proposer(proposal_id) == workflow.deployment.deployer.address

    def test_duplicate_proposal_reverts(self, workflow):
        workflow.propose()
        with pytest.raises(TransactionReverted, match="Governor: proposal already exists"):
            workflow.propose(workflow.mint_proposal())

    def test_different_description_is_new_proposal(self, workflow):
        first = workflow.propose()
        second = workflow.propose(workflow.mint_proposal(description="Proposal 2: Mint again"))
        assert first != second

    def test_empty_proposal_reverts(self, deployment):
        with pytest.raises(TransactionReverted, match="Governor: empty proposal"):
            deployment.governor.propose([], [], [], "nothing")

    def test_length_mismatch_reverts(self, workflow):
        calls = workflow.mint_proposal()
        with pytest.raises(TransactionReverted, match="Governor: invalid proposal length"):
            workflow.deployment.governor.propose(calls.targets, [0, 0], calls.calldatas, "mismatch")

    def test_any_holder_can_propose(self, workflow):
        workflow.propose(proposer="addr1")
        governor = workflow.deployment.governor
        assert governor.proposal_proposer(workflow.proposal_id) == workflow.deployment.signer("addr1").address


class TestProposalThreshold:

    @pytest.fixture(scope="class")
    def gated(self):
        config = HarnessConfig(governor=GovernorConfig(proposal_threshold=2))
        return prepare_deployment(config)

    def test_below_threshold_reverts(self, gated):
        workflow = ProposalWorkflow(gated)
        with pytest.raises(TransactionReverted, match="Governor: proposer votes below proposal threshold"):
            workflow.propose(proposer="addr1")

    def test_at_threshold_succeeds(self, gated):
        snapshot_id = gated.chain.snapshot()
        try:
            workflow = ProposalWorkflow(gated)
            workflow.propose(proposer="addr2")
            assert workflow.state() == ProposalState.PENDING
        finally:
            gated.chain.revert(snapshot_id)


# ══════════════════════════════════════════════════════════════════════
#  STATE
# ══════════════════════════════════════════════════════════════════════


class TestProposalState:

    def test_unknown_id_reverts(self, deployment):
        with pytest.raises(Revert, match=REVERT_UNKNOWN_PROPOSAL):
            deployment.governor.state(12345)

    def test_pending_then_active(self, workflow):
        workflow.propose()
        assert workflow.state() == ProposalState.PENDING
        workflow.advance_voting_delay()
        assert workflow.state() == ProposalState.ACTIVE

    def test_active_through_deadline(self, proposed):
        governor = proposed.deployment.governor
        deadline = governor.proposal_deadline(proposed.proposal_id)
        # views run in the pending block, one past the latest mined block
        proposed.advance(deadline - 1 - proposed.chain.block_number)
        assert proposed.state() == ProposalState.ACTIVE
        proposed.advance(1)
        assert proposed.state() == ProposalState.DEFEATED

    def test_state_without_votes_writes_nothing(self, proposed):
        governor = proposed.deployment.governor
        proposed.advance_voting_period()
        assert proposed.state() == ProposalState.DEFEATED
        assert proposed.proposal_id not in governor.storage.votes
        assert governor.proposal_votes(proposed.proposal_id) == (0, 0, 0)

    def test_state_labels(self):
        assert ProposalState.SUCCEEDED.label == "Succeeded"
        assert int(ProposalState.EXECUTED) == 7


# ══════════════════════════════════════════════════════════════════════
#  VOTING
# ══════════════════════════════════════════════════════════════════════


class TestCastVote:

    def test_weight_is_delegated_balance(self, proposed):
        receipt = proposed.cast_vote("addr3", VOTE_FOR)
        event = receipt.find_event("VoteCast")
        assert event["voter"] == proposed.deployment.signer("addr3").address
        assert event["support"] == VOTE_FOR
        assert event["weight"] == 3
        assert event["reason"] == ""

    def test_tallies(self, proposed):
        proposed.cast_votes({"addr1": VOTE_AGAINST, "addr2": VOTE_FOR, "addr3": VOTE_ABSTAIN})
        governor = proposed.deployment.governor
        assert governor.proposal_votes(proposed.proposal_id) == (1, 2, 3)

    def test_has_voted(self, proposed):
        governor = proposed.deployment.governor
        addr1 = proposed.deployment.signer("addr1")
        assert governor.has_voted(proposed.proposal_id, addr1) is False
        proposed.cast_vote("addr1", VOTE_FOR)
        assert governor.has_voted(proposed.proposal_id, addr1) is True

    def test_vote_with_reason(self, proposed):
        signer = proposed.deployment.signer("addr2")
        receipt = proposed.deployment.governor.connect(signer).cast_vote_with_reason(
            proposed.proposal_id, VOTE_FOR, "mint it"
        )
        assert receipt.find_event("VoteCast")["reason"] == "mint it"

    def test_double_vote_reverts(self, proposed):
        proposed.cast_vote("addr1", VOTE_FOR)
        with pytest.raises(TransactionReverted, match=REVERT_ALREADY_VOTED):
            proposed.cast_vote("addr1", VOTE_AGAINST)
        assert proposed.deployment.governor.proposal_votes(proposed.proposal_id) == (0, 1, 0)

    def test_invalid_support_reverts(self, proposed):
        with pytest.raises(TransactionReverted, match=REVERT_INVALID_SUPPORT):
            proposed.cast_vote("addr1", 3)
        assert not proposed.deployment.governor.has_voted(
            proposed.proposal_id, proposed.deployment.signer("addr1")
        )

    def test_vote_before_delay_reverts(self, workflow):
        workflow.propose()
        with pytest.raises(TransactionReverted, match=REVERT_VOTE_NOT_ACTIVE):
            workflow.cast_vote("addr1", VOTE_FOR)

    def test_vote_on_deadline_block_counts(self, proposed):
        deadline = proposed.deployment.governor.proposal_deadline(proposed.proposal_id)
        proposed.advance(deadline - 1 - proposed.chain.block_number)
        receipt = proposed.cast_vote("addr3", VOTE_FOR)
        assert receipt.block_number == deadline

    def test_vote_after_deadline_reverts(self, proposed):
        proposed.advance_voting_period()
        with pytest.raises(TransactionReverted, match=REVERT_VOTE_NOT_ACTIVE):
            proposed.cast_vote("addr1", VOTE_FOR)

    def test_vote_on_unknown_proposal_reverts(self, deployment):
        signer = deployment.signer("addr1")
        with pytest.raises(TransactionReverted, match=REVERT_UNKNOWN_PROPOSAL):
            deployment.governor.connect(signer).cast_vote(1, VOTE_FOR)

    def test_undelegated_holder_votes_with_zero_weight(self, proposed):
        receipt = proposed.cast_vote("deployer", VOTE_FOR)
        assert receipt.find_event("VoteCast")["weight"] == 0

    def test_delegation_after_snapshot_is_ignored(self, proposed):
        deployer = proposed.deployment.deployer
        proposed.deployment.vote_token.delegate(deployer.address)
        assert proposed.deployment.vote_token.get_votes(deployer) == 94

        receipt = proposed.cast_vote("deployer", VOTE_FOR)
        assert receipt.find_event("VoteCast")["weight"] == 0

    def test_delegation_before_proposal_counts(self, workflow):
        deployer = workflow.deployment.deployer
        workflow.deployment.vote_token.delegate(deployer.address)
        workflow.propose()
        workflow.advance_voting_delay()

        receipt = workflow.cast_vote("deployer", VOTE_AGAINST)
        assert receipt.find_event("VoteCast")["weight"] == 94

    def test_transfer_after_snapshot_keeps_weight(self, proposed):
        nft = proposed.deployment.vote_token
        addr3 = proposed.deployment.signer("addr3")
        addr1 = proposed.deployment.signer("addr1")
        token_id = 99  # the last NFT minted, owned by addr3
        assert nft.owner_of(token_id) == addr3.address
        nft.connect(addr3).transfer_from(addr3.address, addr1.address, token_id)

        assert proposed.cast_vote("addr3", VOTE_FOR).find_event("VoteCast")["weight"] == 3
        assert proposed.cast_vote("addr1", VOTE_FOR).find_event("VoteCast")["weight"] == 1


# ══════════════════════════════════════════════════════════════════════
#  EXECUTION
# ══════════════════════════════════════════════════════════════════════


class TestExecute:

    def test_execute_twice_reverts(self, proposed):
        proposed.cast_votes(ALL_FOR)
        proposed.advance_voting_period()
        proposed.execute()

        with pytest.raises(TransactionReverted, match=REVERT_NOT_SUCCESSFUL):
            proposed.execute()
        assert proposed.receiver_balance() == proposed.scenario_config.mint_amount

    def test_execute_unknown_proposal_reverts(self, workflow):
        calls = workflow.mint_proposal()
        with pytest.raises(TransactionReverted, match=REVERT_UNKNOWN_PROPOSAL):
            workflow.deployment.governor.execute(*calls.execute_args())

    def test_wrong_description_hash_is_unknown(self, proposed):
        proposed.cast_votes(ALL_FOR)
        proposed.advance_voting_period()
        calls = proposed.calls
        with pytest.raises(TransactionReverted, match=REVERT_UNKNOWN_PROPOSAL):
            proposed.deployment.governor.execute(
                calls.targets, calls.values, calls.calldatas, description_hash("something else")
            )

    def test_description_hash_as_hex_string(self, proposed):
        proposed.cast_votes(ALL_FOR)
        proposed.advance_voting_period()
        calls = proposed.calls
        proposed.deployment.governor.execute(
            calls.targets, calls.values, calls.calldatas, "0x" + calls.description_hash.hex()
        )
        assert proposed.state() == ProposalState.EXECUTED

    def test_anyone_can_execute(self, proposed):
        proposed.cast_votes(ALL_FOR)
        proposed.advance_voting_period()
        signer = proposed.deployment.signer("addr2")
        proposed.deployment.governor.connect(signer).execute(*proposed.calls.execute_args())
        assert proposed.receiver_balance() == proposed.scenario_config.mint_amount

    def test_callee_revert_reason_bubbles(self, workflow):
        token = workflow.deployment.token
        calls = ProposalCalls(
            targets=[token.address],
            values=[0],
            calldatas=[token.interface.encode_function_data(
                "transfer", [workflow.scenario_config.receiver, 1]
            )],
            description="Transfer from an empty treasury",
        )
        pass_proposal(workflow, calls)
        with pytest.raises(TransactionReverted, match="ERC20: transfer amount exceeds balance"):
            workflow.execute()
        assert workflow.state() == ProposalState.SUCCEEDED

    def test_callee_revert_without_reason(self, workflow):
        token = workflow.deployment.token
        calls = ProposalCalls(
            targets=[token.address],
            values=[0],
            calldatas=[bytes.fromhex("deadbeef")],
            description="Call a function the token does not have",
        )
        pass_proposal(workflow, calls)
        with pytest.raises(TransactionReverted, match="Governor: call reverted without message"):
            workflow.execute()

    def test_value_transfer_needs_treasury_balance(self, workflow):
        recipient = workflow.deployment.signer("addr1").address
        calls = ProposalCalls(
            targets=[recipient],
            values=[10**18],
            calldatas=[b""],
            description="Pay addr1 one ether",
        )
        pass_proposal(workflow, calls)
        with pytest.raises(TransactionReverted, match="Address: insufficient balance for call"):
            workflow.execute()

        chain = workflow.chain
        chain.send_value(workflow.deployment.governor, 10**18)
        before = chain.balance_of(recipient)
        workflow.execute()
        assert chain.balance_of(recipient) == before + 10**18
        assert chain.balance_of(workflow.deployment.governor) == 0


# ══════════════════════════════════════════════════════════════════════
#  CANCEL
# ══════════════════════════════════════════════════════════════════════


class TestCancel:

    def test_proposer_cancels_pending(self, workflow):
        workflow.propose()
        receipt = workflow.deployment.governor.cancel(*workflow.calls.execute_args())
        assert receipt.find_event("ProposalCanceled")["proposalId"] == workflow.proposal_id
        assert workflow.state() == ProposalState.CANCELED

    def test_only_proposer(self, workflow):
        workflow.propose()
        signer = workflow.deployment.signer("addr1")
        with pytest.raises(TransactionReverted, match="Governor: only proposer can cancel"):
            workflow.deployment.governor.connect(signer).cancel(*workflow.calls.execute_args())

    def test_too_late_once_active(self, proposed):
        with pytest.raises(TransactionReverted, match="Governor: too late to cancel"):
            proposed.deployment.governor.cancel(*proposed.calls.execute_args())

    def test_canceled_cannot_be_voted_or_executed(self, workflow):
        workflow.propose()
        workflow.deployment.governor.cancel(*workflow.calls.execute_args())
        workflow.advance_voting_delay()

        with pytest.raises(TransactionReverted, match=REVERT_VOTE_NOT_ACTIVE):
            workflow.cast_vote("addr3", VOTE_FOR)
        with pytest.raises(TransactionReverted, match=REVERT_NOT_SUCCESSFUL):
            workflow.execute()


# ══════════════════════════════════════════════════════════════════════
#  SELF-GOVERNED SETTINGS
# ══════════════════════════════════════════════════════════════════════


class TestGovernanceOnlySettings:

    def test_direct_call_reverts(self, deployment):
        with pytest.raises(TransactionReverted, match="Governor: onlyGovernance"):
            deployment.governor.update_quorum_numerator(10)
        with pytest.raises(TransactionReverted, match="Governor: onlyGovernance"):
            deployment.governor.set_voting_period(10)

    def test_quorum_numerator_via_proposal(self, workflow):
        calls = governor_calls(workflow, "update_quorum_numerator", [10], "Raise quorum to 10%")
        pass_proposal(workflow, calls)
        snapshot = workflow.deployment.governor.proposal_snapshot(workflow.proposal_id)

        receipt = workflow.execute()
        event = receipt.find_event("QuorumNumeratorUpdated")
        assert (event["oldQuorumNumerator"], event["newQuorumNumerator"]) == (5, 10)

        governor = workflow.deployment.governor
        assert governor.quorum_numerator() == 10
        # proposals already past their snapshot keep the old quorum
        assert governor.quorum_numerator(snapshot) == 5
        assert governor.quorum(snapshot) == 5

    def test_raised_quorum_defeats_six_votes(self, workflow):
        pass_proposal(workflow, governor_calls(workflow, "update_quorum_numerator", [10], "Raise quorum"))
        workflow.execute()

        workflow.propose(workflow.mint_proposal(description="Mint under 10% quorum"))
        workflow.advance_voting_delay()
        workflow.cast_votes(ALL_FOR)
        workflow.advance_voting_period()
        assert workflow.state() == ProposalState.DEFEATED

    def test_quorum_numerator_over_denominator_reverts(self, workflow):
        pass_proposal(workflow, governor_calls(workflow, "update_quorum_numerator", [101], "Bad quorum"))
        with pytest.raises(
            TransactionReverted,
            match="GovernorVotesQuorumFraction: quorumNumerator over quorumDenominator",
        ):
            workflow.execute()

    def test_voting_period_via_proposal(self, workflow):
        pass_proposal(workflow, governor_calls(workflow, "set_voting_period", [100], "Shorter votes"))
        receipt = workflow.execute()
        assert receipt.find_event("VotingPeriodSet")["newVotingPeriod"] == 100
        assert workflow.deployment.governor.voting_period() == 100
