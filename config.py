"""
Configuration loaded from environment variables. Fail-fast on invalid values.

Financial thresholds are integer lamports (1 SOL = 1_000_000_000).
"""

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

from scanner.confidence import ConfidenceModel
from scanner.models import Venue


class CollectionTarget(BaseModel):
    """One tracked collection and its identifier on each venue."""

    model_config = {"frozen": True}

    name: str
    magic_eden: str = ""  # collection symbol, e.g. "mad_lads"
    tensor: str = ""  # collection slug

    def id_for(self, venue: Venue) -> str:
        if venue == Venue.MAGIC_EDEN:
            return self.magic_eden
        if venue == Venue.TENSOR:
            return self.tensor
        return ""


DEFAULT_COLLECTIONS: list[CollectionTarget] = [
    CollectionTarget(name="Mad Lads", magic_eden="mad_lads", tensor="madlads"),
    CollectionTarget(name="Okay Bears", magic_eden="okay_bears", tensor="okay_bears"),
    CollectionTarget(name="DeGods", magic_eden="degods", tensor="degods"),
]


class Config(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True, "extra": "ignore"}

    # Solana
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    # Public key of the trading wallet (balance checks only; signing is external)
    wallet_address: str = ""

    # Venue APIs
    magic_eden_host: str = "https://api-mainnet.magiceden.dev"
    magic_eden_api_key: str = ""
    tensor_host: str = "https://api.tensor.so/graphql"
    tensor_api_key: str = ""
    collections: list[CollectionTarget] = Field(default_factory=lambda: list(DEFAULT_COLLECTIONS))
    fetch_workers: int = Field(default=4, ge=1, le=16)
    fetch_timeout_sec: float = Field(default=10.0, gt=0)

    # Detection thresholds
    min_profit_lamports: int = Field(default=10_000_000, ge=0)  # 0.01 SOL
    fee_buffer_lamports: int = Field(default=10_000_000, ge=0)  # 0.01 SOL
    max_quote_age_ms: int = Field(default=300_000, gt=0)  # 5 minutes
    quote_currency: str = "SOL"

    # Confidence heuristic (policy, not a fitted model)
    confidence_base: float = Field(default=0.5, ge=0.0, le=1.0)
    confidence_fresh_window_ms: int = Field(default=60_000, gt=0)
    reputable_venues: list[Venue] = Field(default_factory=list)
    reputable_venue_bonus: float = Field(default=0.0, ge=0.0, le=1.0)
    # JSON list of [threshold_sol, bonus] pairs, e.g. [[0.1, 0.2], [0.5, 0.2]]
    confidence_profit_tiers: list[tuple[float, float]] = Field(
        default_factory=lambda: [(0.1, 0.2), (0.5, 0.2)],
    )
    confidence_freshness_bonus: float = Field(default=0.1, ge=0.0, le=1.0)
    # Listings priced above this many SOL lose the penalty (unset = off)
    confidence_large_listing_sol: float | None = Field(default=None, gt=0)
    confidence_large_listing_penalty: float = Field(default=0.0, ge=0.0, le=1.0)
    # Signals below this confidence are recorded but never executed
    min_confidence_gate: float = Field(default=0.0, ge=0.0, le=1.0)

    # Execution
    max_signals_per_cycle: int = Field(default=2, ge=1)
    execution_jitter_min_ms: int = Field(default=1000, ge=0)
    execution_jitter_max_ms: int = Field(default=3000, ge=0)
    paper_trading: bool = True

    # Timing
    scan_interval_ms: int = Field(default=5000, gt=0)

    # Operations
    low_balance_warn_lamports: int = Field(default=20_000_000, ge=0)  # 0.02 SOL
    log_level: str = "INFO"
    ledger_path: str = "pnl_ledger.jsonl"
    status_path: str = "status.md"

    @model_validator(mode="after")
    def _check_jitter_range(self) -> "Config":
        if self.execution_jitter_min_ms > self.execution_jitter_max_ms:
            raise ValueError(
                f"execution_jitter_min_ms ({self.execution_jitter_min_ms}) must not exceed "
                f"execution_jitter_max_ms ({self.execution_jitter_max_ms})"
            )
        return self

    @model_validator(mode="after")
    def _check_profit_tiers(self) -> "Config":
        for threshold, bonus in self.confidence_profit_tiers:
            if threshold < 0 or not 0.0 <= bonus <= 1.0:
                raise ValueError(
                    f"confidence_profit_tiers entry ({threshold}, {bonus}) needs "
                    "threshold >= 0 and bonus in [0, 1]"
                )
        return self

    @property
    def scan_interval_sec(self) -> float:
        return self.scan_interval_ms / 1000.0

    @property
    def jitter_ms(self) -> tuple[int, int]:
        return (self.execution_jitter_min_ms, self.execution_jitter_max_ms)

    def confidence_model(self) -> ConfidenceModel:
        """Build the detector's confidence heuristic from the configured knobs."""
        return ConfidenceModel(
            base=self.confidence_base,
            fresh_window_ms=self.confidence_fresh_window_ms,
            reputable_venues=frozenset(self.reputable_venues),
            reputable_bonus=self.reputable_venue_bonus,
            profit_tiers=tuple(self.confidence_profit_tiers),
            freshness_bonus=self.confidence_freshness_bonus,
            large_listing_sol=self.confidence_large_listing_sol,
            large_listing_penalty=self.confidence_large_listing_penalty,
        )


def load_config() -> Config:
    """Load and validate config from environment. Raises ValidationError on bad values."""
    return Config()
