"""
nftgov Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast

from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE GOVERNOR VALUES BELOW MIRROR THE DEPLOYED GOVERNOR UNDER TEST. CHANGE THEM
# THROUGH nftgov.config (config.toml / NFTGOV_* ENV VARS) RATHER THAN EDITING THIS FILE,
# OR THE SCENARIO EXPECTATIONS WILL NO LONGER DESCRIBE THE REAL CONTRACTS.

# ==================================================================================
# LEDGER CONSTANTS
# ==================================================================================
ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
MAX_UINT256 = 2**256 - 1
GENESIS_BLOCK_NUMBER = 0
DEFAULT_ACCOUNT_COUNT = 20
DEFAULT_ACCOUNT_SEED = 'nftgov test ledger'
DEFAULT_ACCOUNT_BALANCE_WEI = 10_000 * 10**18  # 10,000 ETH per signer


# ==================================================================================
# GOVERNOR PARAMETERS
# ==================================================================================
GOVERNOR_NAME = 'MyGovernor'
GOVERNOR_VERSION = '1'
GOVERNOR_VOTING_DELAY_BLOCKS = 1
GOVERNOR_VOTING_PERIOD_BLOCKS = 45818  # ~1 week of 13.2s mainnet blocks
GOVERNOR_PROPOSAL_THRESHOLD = 0
GOVERNOR_QUORUM_NUMERATOR = 5  # 5% of past total supply
GOVERNOR_QUORUM_DENOMINATOR = 100
GOVERNOR_COUNTING_MODE = 'support=bravo&quorum=for,abstain'

# Vote support codes (GovernorCountingSimple)
VOTE_AGAINST = 0
VOTE_FOR = 1
VOTE_ABSTAIN = 2


# ==================================================================================
# TOKEN PARAMETERS
# ==================================================================================
VOTE_TOKEN_NAME = 'MyNFT'
VOTE_TOKEN_SYMBOL = 'MNFT'
MINTABLE_TOKEN_NAME = 'MyToken'
MINTABLE_TOKEN_SYMBOL = 'MTK'
MINTABLE_TOKEN_DECIMALS = 18


# ==================================================================================
# SCENARIO DEFAULTS
# ==================================================================================
# deployer keeps 94 so that supply = 100 and 5% quorum = 5 votes
DEFAULT_ALLOCATIONS = (
    ('deployer', 94),
    ('addr1', 1),
    ('addr2', 2),
    ('addr3', 3),
)
DEFAULT_RECEIVER = '0x29D7d1dd5B6f9C864d9db560D72a247c178aE86B'
DEFAULT_MINT_AMOUNT = 1000 * 10**MINTABLE_TOKEN_DECIMALS
DEFAULT_DESCRIPTION = 'Proposal 1: Mint 1000 MTK to address'


# ==================================================================================
# REVERT REASONS
# ==================================================================================
REVERT_NOT_SUCCESSFUL = 'Governor: proposal not successful'
REVERT_VOTE_NOT_ACTIVE = 'Governor: vote not currently active'
REVERT_UNKNOWN_PROPOSAL = 'Governor: unknown proposal id'
REVERT_ALREADY_VOTED = 'GovernorVotingSimple: vote already cast'
REVERT_INVALID_SUPPORT = 'GovernorVotingSimple: invalid value for enum VoteType'
REVERT_NOT_OWNER = 'Ownable: caller is not the owner'


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
