"""
nftgov Exceptions

Custom exception classes shared by the ledger, the contracts and the harness.
"""

from typing import Optional


class NftGovException(Exception):
    """Base exception for nftgov."""
    pass


class ConfigurationError(NftGovException):
    """Configuration error."""
    pass


class Revert(NftGovException):
    """
    Raised by contract code when a precondition fails.

    Carries the revert reason string exactly as the contract states it, or
    None for a revert without a message.
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "reverted without a reason")


class InvalidAddressError(NftGovException):
    """Invalid address format."""
    pass


class AbiError(NftGovException):
    """Calldata could not be encoded or decoded."""
    pass
