"""Infrastructure layer for the Market Intelligence Engine.

Re-exports the public API surface for convenience::

    from market_intelligence.infrastructure import (
        EngineConfig, EventBus, EventStore, AgentRegistry, InMemoryPersistence,
    )
"""

from market_intelligence.infrastructure.config import (
    AgentsConfig,
    ConsensusConfig,
    EngineConfig,
    LoggingConfig,
    OrchestrationConfig,
    SignalFusionConfig,
    configure_logging,
    load_config_file,
    load_config_from_env,
    load_config_from_json,
    load_config_from_yaml,
)
from market_intelligence.infrastructure.event_bus import EventBus, EventStore
from market_intelligence.infrastructure.market_data import (
    MappingMarketDataProvider,
    MarketDataProvider,
    parse_briefing,
)
from market_intelligence.infrastructure.persistence import (
    AnalysisRecord,
    InMemoryPersistence,
    MarketRecord,
    Persistence,
)
from market_intelligence.infrastructure.registry import AgentRegistry

__all__ = [
    "AgentRegistry",
    "AgentsConfig",
    "AnalysisRecord",
    "ConsensusConfig",
    "EngineConfig",
    "EventBus",
    "EventStore",
    "InMemoryPersistence",
    "LoggingConfig",
    "MappingMarketDataProvider",
    "MarketDataProvider",
    "MarketRecord",
    "OrchestrationConfig",
    "Persistence",
    "SignalFusionConfig",
    "configure_logging",
    "load_config_file",
    "load_config_from_env",
    "load_config_from_json",
    "load_config_from_yaml",
    "parse_briefing",
]
