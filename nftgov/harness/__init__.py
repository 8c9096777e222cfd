"""
nftgov Harness

Provides:
  - GovernanceDeployment / deploy_governance        (deployment.py)
  - ProposalWorkflow / ExecutionOutcome             (workflow.py)
  - Scenario / ScenarioResult / run_scenario(s)     (scenarios.py)
  - HarnessError / UnknownScenarioError             (errors.py)
"""

from .deployment import GovernanceDeployment, deploy_governance
from .errors import HarnessError, UnknownScenarioError
from .scenarios import (
    SCENARIOS,
    Scenario,
    ScenarioResult,
    get_scenario,
    prepare_deployment,
    run_scenario,
    run_scenarios,
    scenario_names,
)
from .workflow import ExecutionOutcome, ProposalWorkflow, hex_blocks

__all__ = [
    # Deployment
    "GovernanceDeployment",
    "deploy_governance",
    # Errors
    "HarnessError",
    "UnknownScenarioError",
    # Scenarios
    "SCENARIOS",
    "Scenario",
    "ScenarioResult",
    "get_scenario",
    "prepare_deployment",
    "run_scenario",
    "run_scenarios",
    "scenario_names",
    # Workflow
    "ExecutionOutcome",
    "ProposalWorkflow",
    "hex_blocks",
]
