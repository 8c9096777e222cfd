"""
nftgov: token-weighted governance on a local ledger

Core imports are lazily loaded so that importing a submodule does not pull in
the whole package. For direct access, import from submodules:

    from nftgov.chain import Chain
    from nftgov.governance import Governor
    from nftgov.harness import deploy_governance, ProposalWorkflow
"""

__version__ = "1.0.0"


# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Chain':
        from .chain import Chain
        return Chain
    elif name == 'Governor':
        from .governance import Governor
        return Governor
    elif name == 'deploy_governance':
        from .harness import deploy_governance
        return deploy_governance
    elif name == 'TransactionReverted':
        from .chain import TransactionReverted
        return TransactionReverted
    raise AttributeError(f"module 'nftgov' has no attribute {name!r}")

__all__ = ['Chain', 'Governor', 'deploy_governance', 'TransactionReverted']
