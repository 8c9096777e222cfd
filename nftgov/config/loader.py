"""
nftgov TOML Configuration Loader

Loads every section of config.toml with environment variable overrides.
Each section is a dataclass with from_dict / apply_env; the aggregate
HarnessConfig adds from_file / validate / to_dict.

Environment variable mapping:
    [chain] account_count       → NFTGOV_ACCOUNT_COUNT
    [governor] voting_delay     → NFTGOV_VOTING_DELAY
    [governor] voting_period    → NFTGOV_VOTING_PERIOD
    [governor] quorum_numerator → NFTGOV_QUORUM_NUMERATOR
    ...

The governor values are not defined by the tests that use them; they describe
the deployed governor and must be confirmed against it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_ACCOUNT_BALANCE_WEI,
    DEFAULT_ACCOUNT_COUNT,
    DEFAULT_ACCOUNT_SEED,
    DEFAULT_ALLOCATIONS,
    DEFAULT_DESCRIPTION,
    DEFAULT_MINT_AMOUNT,
    DEFAULT_RECEIVER,
    GOVERNOR_NAME,
    GOVERNOR_PROPOSAL_THRESHOLD,
    GOVERNOR_QUORUM_DENOMINATOR,
    GOVERNOR_QUORUM_NUMERATOR,
    GOVERNOR_VOTING_DELAY_BLOCKS,
    GOVERNOR_VOTING_PERIOD_BLOCKS,
    MAX_UINT256,
    MINTABLE_TOKEN_NAME,
    MINTABLE_TOKEN_SYMBOL,
    VOTE_TOKEN_NAME,
    VOTE_TOKEN_SYMBOL,
)
from ..crypto.address import normalize_address
from ..exceptions import ConfigurationError, InvalidAddressError

logger = logging.getLogger(__name__)


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if v is None or v == "":
        return None
    try:
        return int(v, 0)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}") from e


def _as_int(value: Any, name: str) -> int:
    # TOML integers stop at 64 bits, so token amounts may be given as strings
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.replace("_", ""), 0)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _check_ints(section: str, **values: Any) -> None:
    for name, value in values.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigurationError(f"{section}.{name} must be an integer, got {value!r}")


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class ChainConfig:
    """[chain] section."""
    account_count: int = DEFAULT_ACCOUNT_COUNT
    account_seed: str = DEFAULT_ACCOUNT_SEED
    initial_balance_wei: int = DEFAULT_ACCOUNT_BALANCE_WEI

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainConfig":
        return cls(
            account_count=_as_int(data.get("account_count", DEFAULT_ACCOUNT_COUNT), "chain.account_count"),
            account_seed=data.get("account_seed", DEFAULT_ACCOUNT_SEED),
            initial_balance_wei=_as_int(
                data.get("initial_balance_wei", DEFAULT_ACCOUNT_BALANCE_WEI), "chain.initial_balance_wei"
            ),
        )

    def apply_env(self) -> None:
        if (v := _env_int("NFTGOV_ACCOUNT_COUNT")) is not None:
            self.account_count = v
        if v := os.environ.get("NFTGOV_ACCOUNT_SEED"):
            self.account_seed = v

    def validate(self) -> None:
        _check_ints("chain", account_count=self.account_count, initial_balance_wei=self.initial_balance_wei)
        if self.account_count < 4:
            raise ConfigurationError("account_count must be >= 4 (deployer + three voters)")
        if self.initial_balance_wei < 0:
            raise ConfigurationError("initial_balance_wei cannot be negative")


@dataclass
class GovernorConfig:
    """[governor] section."""
    name: str = GOVERNOR_NAME
    voting_delay: int = GOVERNOR_VOTING_DELAY_BLOCKS
    voting_period: int = GOVERNOR_VOTING_PERIOD_BLOCKS
    proposal_threshold: int = GOVERNOR_PROPOSAL_THRESHOLD
    quorum_numerator: int = GOVERNOR_QUORUM_NUMERATOR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernorConfig":
        return cls(
            name=data.get("name", GOVERNOR_NAME),
            voting_delay=_as_int(data.get("voting_delay", GOVERNOR_VOTING_DELAY_BLOCKS), "governor.voting_delay"),
            voting_period=_as_int(data.get("voting_period", GOVERNOR_VOTING_PERIOD_BLOCKS), "governor.voting_period"),
            proposal_threshold=_as_int(
                data.get("proposal_threshold", GOVERNOR_PROPOSAL_THRESHOLD), "governor.proposal_threshold"
            ),
            quorum_numerator=_as_int(
                data.get("quorum_numerator", GOVERNOR_QUORUM_NUMERATOR), "governor.quorum_numerator"
            ),
        )

    def apply_env(self) -> None:
        if (v := _env_int("NFTGOV_VOTING_DELAY")) is not None:
            self.voting_delay = v
        if (v := _env_int("NFTGOV_VOTING_PERIOD")) is not None:
            self.voting_period = v
        if (v := _env_int("NFTGOV_PROPOSAL_THRESHOLD")) is not None:
            self.proposal_threshold = v
        if (v := _env_int("NFTGOV_QUORUM_NUMERATOR")) is not None:
            self.quorum_numerator = v

    def validate(self) -> None:
        _check_ints(
            "governor",
            voting_delay=self.voting_delay,
            voting_period=self.voting_period,
            proposal_threshold=self.proposal_threshold,
            quorum_numerator=self.quorum_numerator,
        )
        if self.voting_delay < 0:
            raise ConfigurationError("voting_delay cannot be negative")
        if self.voting_period < 1:
            raise ConfigurationError("voting_period must be >= 1 block")
        if self.proposal_threshold < 0:
            raise ConfigurationError("proposal_threshold cannot be negative")
        if not 0 <= self.quorum_numerator <= GOVERNOR_QUORUM_DENOMINATOR:
            raise ConfigurationError(
                f"quorum_numerator must be within 0..{GOVERNOR_QUORUM_DENOMINATOR}"
            )


@dataclass
class TokensConfig:
    """[tokens] section."""
    vote_token_name: str = VOTE_TOKEN_NAME
    vote_token_symbol: str = VOTE_TOKEN_SYMBOL
    mintable_token_name: str = MINTABLE_TOKEN_NAME
    mintable_token_symbol: str = MINTABLE_TOKEN_SYMBOL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokensConfig":
        return cls(
            vote_token_name=data.get("vote_token_name", VOTE_TOKEN_NAME),
            vote_token_symbol=data.get("vote_token_symbol", VOTE_TOKEN_SYMBOL),
            mintable_token_name=data.get("mintable_token_name", MINTABLE_TOKEN_NAME),
            mintable_token_symbol=data.get("mintable_token_symbol", MINTABLE_TOKEN_SYMBOL),
        )


@dataclass
class ScenarioConfig:
    """[scenario] section: who holds how many NFTs and what gets proposed."""
    allocations: List[Tuple[str, int]] = field(default_factory=lambda: list(DEFAULT_ALLOCATIONS))
    receiver: str = DEFAULT_RECEIVER
    mint_amount: int = DEFAULT_MINT_AMOUNT
    description: str = DEFAULT_DESCRIPTION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioConfig":
        raw_allocations = data.get("allocations")
        if raw_allocations is None:
            allocations = list(DEFAULT_ALLOCATIONS)
        else:
            # [[scenario.allocations]] label = "addr1"  nfts = 1
            allocations = [
                (a["label"], _as_int(a["nfts"], f"scenario.allocations[{a['label']}].nfts"))
                for a in raw_allocations
            ]
        return cls(
            allocations=allocations,
            receiver=data.get("receiver", DEFAULT_RECEIVER),
            mint_amount=_as_int(data.get("mint_amount", DEFAULT_MINT_AMOUNT), "scenario.mint_amount"),
            description=data.get("description", DEFAULT_DESCRIPTION),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("NFTGOV_RECEIVER"):
            self.receiver = v
        if (v := _env_int("NFTGOV_MINT_AMOUNT")) is not None:
            self.mint_amount = v

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self.allocations]

    @property
    def total_supply(self) -> int:
        return sum(n for _, n in self.allocations)

    def validate(self, account_count: int) -> None:
        if not self.allocations:
            raise ConfigurationError("scenario.allocations cannot be empty")
        if len(set(self.labels)) != len(self.labels):
            raise ConfigurationError("scenario.allocations labels must be unique")
        if len(self.allocations) > account_count:
            raise ConfigurationError(
                f"{len(self.allocations)} allocations but only {account_count} accounts"
            )
        _check_ints("scenario", mint_amount=self.mint_amount)
        for label, n in self.allocations:
            if not isinstance(n, int) or isinstance(n, bool):
                raise ConfigurationError(f"scenario.allocations[{label}].nfts must be an integer, got {n!r}")
        if any(n < 0 for _, n in self.allocations):
            raise ConfigurationError("NFT allocations cannot be negative")
        if not 0 < self.mint_amount <= MAX_UINT256:
            raise ConfigurationError("mint_amount must be positive and fit in a uint256")
        try:
            normalize_address(self.receiver)
        except InvalidAddressError as e:
            raise ConfigurationError(f"scenario.receiver is not an address: {self.receiver!r}") from e
        if not self.description:
            raise ConfigurationError("description cannot be empty")


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


@dataclass
class HarnessConfig:
    """Top-level configuration combining every section."""
    chain: ChainConfig = field(default_factory=ChainConfig)
    governor: GovernorConfig = field(default_factory=GovernorConfig)
    tokens: TokensConfig = field(default_factory=TokensConfig)
    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HarnessConfig":
        return cls(
            chain=ChainConfig.from_dict(data.get("chain", {})),
            governor=GovernorConfig.from_dict(data.get("governor", {})),
            tokens=TokensConfig.from_dict(data.get("tokens", {})),
            scenario=ScenarioConfig.from_dict(data.get("scenario", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "HarnessConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides).
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        try:
            cfg = cls.from_dict(raw)
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"Malformed section in {config_path}: {e}") from e
        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.chain.apply_env()
        self.governor.apply_env()
        self.scenario.apply_env()

    def validate(self) -> bool:
        """
        Validate all sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.chain.validate()
        self.governor.validate()
        self.scenario.validate(self.chain.account_count)
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "chain": {
                "account_count": self.chain.account_count,
                "account_seed": self.chain.account_seed,
            },
            "governor": {
                "name": self.governor.name,
                "voting_delay": self.governor.voting_delay,
                "voting_period": self.governor.voting_period,
                "proposal_threshold": self.governor.proposal_threshold,
                "quorum_numerator": self.governor.quorum_numerator,
            },
            "tokens": {
                "vote_token": f"{self.tokens.vote_token_name} ({self.tokens.vote_token_symbol})",
                "mintable_token": f"{self.tokens.mintable_token_name} ({self.tokens.mintable_token_symbol})",
            },
            "scenario": {
                "allocations": dict(self.scenario.allocations),
                "receiver": self.scenario.receiver,
                "mint_amount": str(self.scenario.mint_amount),
                "description": self.scenario.description,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> HarnessConfig:
    """
    Load and validate harness configuration.

    Resolution order:
        1. Explicit *path* argument
        2. NFTGOV_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("NFTGOV_CONFIG", "config.toml")

    cfg = HarnessConfig.from_file(path)
    cfg.validate()
    return cfg
