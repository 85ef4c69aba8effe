"""Shared domain types: intents, agent configuration and status records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta

PRIORITY_LOW = 1
PRIORITY_URGENT = 10
DEFAULT_TTL = timedelta(hours=1)


class AgentType(str, enum.Enum):
    """Kind of service an agent offers."""

    TRADING = "trading"
    DATA_ACCESS = "data_access"
    COMPUTATION = "computation"
    GENERAL = "general"

    def __str__(self) -> str:
        return self.value


@dataclass
class BidStrategy:
    """How an agent prices its bids."""

    type: str = ""  # "conservative", "aggressive" or "balanced"
    base_fee: str = ""
    profit_margin: float = 0.0
    risk_factor: float = 0.0


@dataclass
class IntentFilter:
    """Rules deciding which intents an agent looks at."""

    allowed_types: list[str] = field(default_factory=list)
    blocked_types: list[str] = field(default_factory=list)
    allowed_senders: list[str] = field(default_factory=list)
    blocked_senders: list[str] = field(default_factory=list)
    min_priority: int = 0
    max_priority: int = 0
    required_tags: list[str] = field(default_factory=list)


@dataclass
class AgentConfig:
    """Configuration of a service agent."""

    agent_id: str = ""
    agent_type: AgentType = AgentType.GENERAL
    name: str = ""
    description: str = ""
    capabilities: list[str] = field(default_factory=list)
    specializations: list[str] = field(default_factory=list)
    bid_strategy: BidStrategy = field(default_factory=BidStrategy)
    max_concurrent_intents: int = 0
    min_bid_amount: str = ""
    max_bid_amount: str = ""
    intent_filter: IntentFilter = field(default_factory=IntentFilter)


@dataclass
class AgentStatus:
    """Point-in-time status of a service agent."""

    agent_id: str = ""
    status: str = "offline"  # "active", "busy" or "offline"
    active_intents: int = 0
    processed_intents: int = 0
    successful_bids: int = 0
    total_earnings: str = "0"
    last_activity: datetime = field(default_factory=datetime.now)
    connected_peers: int = 0


@dataclass
class BidDecision:
    """Outcome of deciding whether and how much to bid."""

    should_bid: bool = False
    bid_amount: str = ""
    confidence: float = 0.0
    reason: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class AgentMetrics:
    """Running performance figures of a service agent."""

    intents_received: int = 0
    intents_filtered: int = 0
    bids_submitted: int = 0
    bids_won: int = 0
    total_earnings: str = "0"
    average_confidence: float = 0.0
    average_response_time: timedelta = field(default_factory=timedelta)
    last_updated: datetime = field(default_factory=datetime.now)


@dataclass
class DataTag:
    """A data tag attached to an intent, possibly carrying a fee."""

    tag_name: str = ""
    tag_fee: str = ""
    is_tradable: bool = False


class IntentStatus(str, enum.Enum):
    """Lifecycle state of an intent."""

    CREATED = "created"
    VALIDATED = "validated"
    BROADCASTED = "broadcasted"
    PROCESSED = "processed"
    MATCHED = "matched"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


@dataclass
class Intent:
    """An intent broadcast across the network."""

    id: str = ""
    type: str = ""
    payload: bytes = b""
    timestamp: int = 0
    sender_id: str = ""
    metadata: dict[str, str] | None = None
    priority: int = 0
    ttl: int = 0
    max_duration: int = 0
    relevant_tags: list[DataTag] = field(default_factory=list)
    signature: bytes = b""
    signature_algorithm: str = ""
    processed_at: int = 0
    status: IntentStatus = IntentStatus.CREATED


@dataclass
class IntentEvent:
    """An intent as received from a topic."""

    intent: Intent
    topic: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""


class ErrorCode(str, enum.Enum):
    """Categories of intent processing errors."""

    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    PROCESSING_FAILED = "PROCESSING_FAILED"
    HANDLER_NOT_FOUND = "HANDLER_NOT_FOUND"

    def __str__(self) -> str:
        return self.value


class IntentError(Exception):
    """An error raised while handling an intent."""

    def __init__(self, code: ErrorCode, message: str, details: str = "") -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"[{self.code.value}] {self.message}"
        if self.details:
            text += f" ({self.details})"
        if self.__cause__ is not None:
            text += f": {self.__cause__}"
        return text

    @classmethod
    def wrap(cls, error: BaseException, code: ErrorCode, message: str) -> IntentError:
        """Return a new error with ``error`` as its cause."""
        wrapped = cls(code, message)
        wrapped.__cause__ = error
        return wrapped


def default_agent_config() -> AgentConfig:
    """Return the default service agent configuration."""
    return AgentConfig(
        agent_type=AgentType.GENERAL,
        max_concurrent_intents=10,
        min_bid_amount="1000",
        max_bid_amount="100000",
        bid_strategy=BidStrategy(
            type="balanced",
            base_fee="5000",
            profit_margin=0.15,
            risk_factor=0.1,
        ),
        intent_filter=IntentFilter(min_priority=1, max_priority=10),
    )