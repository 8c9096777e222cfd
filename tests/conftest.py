"""
Shared fixtures for the governance suite.

The expensive part (three deployments, 100 NFT mints, three delegations) runs
once per test module; every test then works on a ledger snapshot that is
reverted afterwards, so tests never see each other's transactions.
"""

import logging
import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from nftgov.chain import Chain
from nftgov.config import HarnessConfig
from nftgov.harness import ProposalWorkflow, prepare_deployment


@pytest.fixture(scope="module")
def prepared():
    """Deployed contracts with NFTs distributed and voters self-delegated."""
    return prepare_deployment(HarnessConfig())


@pytest.fixture
def deployment(prepared):
    snapshot_id = prepared.chain.snapshot()
    yield prepared
    prepared.chain.revert(snapshot_id)


@pytest.fixture
def workflow(deployment):
    return ProposalWorkflow(deployment)


@pytest.fixture
def proposed(workflow):
    """The default mint proposal, submitted and one block past its snapshot."""
    workflow.propose()
    workflow.advance_voting_delay()
    return workflow


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def quiet_logs():
    """Raise the root level so INFO lines stay out of captured CLI output."""
    root = logging.getLogger()
    level = root.level
    root.setLevel(logging.WARNING)
    yield
    root.setLevel(level)
