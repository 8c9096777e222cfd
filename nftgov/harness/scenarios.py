"""
Scenario Catalogue

Named voting scenarios run against one prepared deployment. Every scenario
starts from the same snapshot (NFTs distributed, voters self-delegated), so
they are independent of each other and of the order they run in.

Default weights: deployer 94 (never votes), addr1 1, addr2 2, addr3 3.
Quorum at 5% of a supply of 100 is 5 votes of for + abstain.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config.loader import HarnessConfig
from ..constants import REVERT_NOT_SUCCESSFUL, VOTE_ABSTAIN, VOTE_AGAINST, VOTE_FOR
from ..governance.proposals import ProposalState
from ..logger import get_logger
from .deployment import GovernanceDeployment, deploy_governance
from .errors import UnknownScenarioError
from .workflow import ExecutionOutcome, ProposalWorkflow

logger = get_logger(__name__)


@dataclass(frozen=True)
class Scenario:
    name: str
    title: str
    votes: Tuple[Tuple[str, int], ...]
    expected_state: ProposalState
    period_divisor: int = 1
    expected_revert: Optional[str] = None

    @property
    def expects_execution(self) -> bool:
        return self.expected_revert is None


@dataclass
class ScenarioResult:
    scenario: Scenario
    proposal_id: int
    state: ProposalState
    outcome: ExecutionOutcome
    expected_amount: int
    problems: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario": self.scenario.name,
            "title": self.scenario.title,
            "proposalId": str(self.proposal_id),
            "state": self.state.label,
            "expectedState": self.scenario.expected_state.label,
            "outcome": self.outcome.to_dict(),
            "passed": self.passed,
            "problems": list(self.problems),
        }


SCENARIOS: Tuple[Scenario, ...] = (
    Scenario(
        name="success",
        title="6/100 for, full period elapsed: tokens minted",
        votes=(("addr1", VOTE_FOR), ("addr2", VOTE_FOR), ("addr3", VOTE_FOR)),
        expected_state=ProposalState.SUCCEEDED,
    ),
    Scenario(
        name="premature",
        title="6/100 for, half the period elapsed: still active",
        votes=(("addr1", VOTE_FOR), ("addr2", VOTE_FOR), ("addr3", VOTE_FOR)),
        expected_state=ProposalState.ACTIVE,
        period_divisor=2,
        expected_revert=REVERT_NOT_SUCCESSFUL,
    ),
    Scenario(
        name="quorum-unmet",
        title="3/100 for: below the 5% quorum",
        votes=(("addr1", VOTE_FOR), ("addr2", VOTE_FOR)),
        expected_state=ProposalState.DEFEATED,
        expected_revert=REVERT_NOT_SUCCESSFUL,
    ),
    Scenario(
        name="against-heavy",
        title="3 for vs 3 against: for does not exceed against",
        votes=(("addr1", VOTE_FOR), ("addr2", VOTE_FOR), ("addr3", VOTE_AGAINST)),
        expected_state=ProposalState.DEFEATED,
        expected_revert=REVERT_NOT_SUCCESSFUL,
    ),
    Scenario(
        name="abstain-quorum",
        title="3 for + 3 abstain: abstain counts toward quorum",
        votes=(("addr1", VOTE_FOR), ("addr2", VOTE_FOR), ("addr3", VOTE_ABSTAIN)),
        expected_state=ProposalState.SUCCEEDED,
    ),
    Scenario(
        name="against-not-quorum",
        title="3 for vs 2 against: against does not count toward quorum",
        votes=(("addr3", VOTE_FOR), ("addr2", VOTE_AGAINST)),
        expected_state=ProposalState.DEFEATED,
        expected_revert=REVERT_NOT_SUCCESSFUL,
    ),
)

_BY_NAME = {s.name: s for s in SCENARIOS}


def get_scenario(name: str) -> Scenario:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise UnknownScenarioError(
            f"Unknown scenario {name!r}; available: {', '.join(_BY_NAME)}"
        ) from None


def scenario_names() -> List[str]:
    return list(_BY_NAME)


def prepare_deployment(config: Optional[HarnessConfig] = None) -> GovernanceDeployment:
    """Deploy, distribute and self-delegate; the common starting point."""
    deployment = deploy_governance(config)
    ProposalWorkflow(deployment).setup()
    return deployment


def run_scenario(scenario: Scenario, deployment: GovernanceDeployment) -> ScenarioResult:
    """
    Run *scenario* on *deployment* and roll the ledger back afterwards.
    """
    chain = deployment.chain
    snapshot_id = chain.snapshot()
    try:
        workflow = ProposalWorkflow(deployment)
        proposal_id = workflow.propose()
        workflow.advance_voting_delay()
        workflow.cast_votes(dict(scenario.votes))
        workflow.advance_voting_period(scenario.period_divisor)
        state = workflow.state()
        outcome = workflow.try_execute()
    finally:
        chain.revert(snapshot_id)

    expected_amount = deployment.config.scenario.mint_amount
    problems = []
    if state != scenario.expected_state:
        problems.append(f"state {state.label}, expected {scenario.expected_state.label}")
    if scenario.expects_execution:
        if not outcome.executed:
            problems.append(f"execution reverted: {outcome.revert_reason}")
        elif outcome.balance_delta != expected_amount:
            problems.append(f"receiver gained {outcome.balance_delta}, expected {expected_amount}")
    else:
        if outcome.executed:
            problems.append("execution succeeded, expected a revert")
        elif outcome.revert_reason != scenario.expected_revert:
            problems.append(f"reverted with {outcome.revert_reason!r}, expected {scenario.expected_revert!r}")
        if outcome.balance_delta != 0:
            problems.append(f"receiver balance changed by {outcome.balance_delta}")

    result = ScenarioResult(
        scenario=scenario,
        proposal_id=proposal_id,
        state=state,
        outcome=outcome,
        expected_amount=expected_amount,
        problems=problems,
    )
    logger.info(f"Scenario {scenario.name}: {'passed' if result.passed else 'FAILED'} ({state.label})")
    return result


def run_scenarios(
    names: Optional[Iterable[str]] = None,
    config: Optional[HarnessConfig] = None,
) -> List[ScenarioResult]:
    """Run the named scenarios (all by default) against one prepared deployment."""
    selected = [get_scenario(n) for n in names] if names else list(SCENARIOS)
    deployment = prepare_deployment(config)
    return [run_scenario(s, deployment) for s in selected]
