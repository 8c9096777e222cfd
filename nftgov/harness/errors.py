"""
Harness exceptions.
"""

from ..exceptions import NftGovException


class HarnessError(NftGovException):
    """The workflow was driven into a state it cannot continue from."""
    pass


class UnknownScenarioError(HarnessError):
    """No scenario is registered under the requested name."""
    pass
