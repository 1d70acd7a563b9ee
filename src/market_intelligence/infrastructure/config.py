"""Configuration dataclasses for the Market Intelligence Engine.

Each config is a frozen ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid values.  An ``EngineConfig`` is built once (from
defaults, JSON, YAML or environment variables) and injected into the
orchestrator and every stage; nothing reads configuration from module state.

Section and field names are snake_case; camelCase spellings (``timeoutMs``,
``minAgentsRequired``, ``baseWeights``...) are accepted on input.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from market_intelligence.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    return {_snake(str(k)): v for k, v in data.items()}


def _filtered(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    valid_keys = {f.name for f in fields(cls)}
    return {k: v for k, v in _normalize_keys(data).items() if k in valid_keys}


# ===================================================================== #
#  Agents                                                                #
# ===================================================================== #

@dataclass(frozen=True)
class AgentsConfig:
    """Parallel agent execution parameters.

    Attributes
    ----------
    timeout_ms:
        Per-agent deadline in milliseconds.
    min_agents_required:
        Minimum number of successful signals needed to continue a run.
    enabled:
        Names of the agents to run.  Empty means every registered agent.
    """

    timeout_ms: int = 10000
    min_agents_required: int = 2
    enabled: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled", tuple(self.enabled or ()))

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def validate(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if self.min_agents_required < 1:
            raise ValueError(
                f"min_agents_required must be >= 1, got {self.min_agents_required}"
            )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["enabled"] = list(self.enabled)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AgentsConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Signal fusion                                                         #
# ===================================================================== #

DEFAULT_BASE_WEIGHTS: dict[str, float] = {
    "market_microstructure": 1.0,
    "probability_baseline": 1.0,
    "risk_assessment": 1.0,
    "breaking_news": 1.2,
    "event_impact": 1.2,
    "polling_intelligence": 1.5,
    "historical_pattern": 1.0,
    "media_sentiment": 0.8,
    "social_sentiment": 0.8,
    "narrative_velocity": 0.8,
    "momentum": 1.0,
    "mean_reversion": 1.0,
    "catalyst": 1.0,
    "tail_risk": 1.0,
}


@dataclass(frozen=True)
class SignalFusionConfig:
    """Weighting and conflict parameters for signal fusion.

    Attributes
    ----------
    base_weights:
        Category -> base weight.  Unknown categories weigh 1.0.
    conflict_threshold:
        Normalized gap below which the fused view is flagged as high
        conflict.  Also the pairwise disagreement threshold.
    alignment_bonus:
        Bonus per additional agreeing category once a majority of
        categories agree on a direction.
    context_adjustments:
        Apply event-type and volatility adjustments to base weights.
    """

    base_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_BASE_WEIGHTS)
    )
    conflict_threshold: float = 0.2
    alignment_bonus: float = 0.2
    context_adjustments: bool = True

    def __post_init__(self) -> None:
        if self.base_weights is None:
            object.__setattr__(self, "base_weights", dict(DEFAULT_BASE_WEIGHTS))

    def weight_for(self, category: str) -> float:
        return float(self.base_weights.get(category, 1.0))

    def validate(self) -> None:
        if not (0.0 <= self.conflict_threshold <= 1.0):
            raise ValueError(
                f"conflict_threshold must be in [0, 1], got {self.conflict_threshold}"
            )
        if self.alignment_bonus < 0.0:
            raise ValueError(
                f"alignment_bonus must be >= 0, got {self.alignment_bonus}"
            )
        for category, weight in self.base_weights.items():
            if weight < 0.0:
                raise ValueError(
                    f"base weight for '{category}' must be >= 0, got {weight}"
                )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["base_weights"] = dict(self.base_weights)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SignalFusionConfig:
        filtered = _filtered(cls, data)
        if "base_weights" in filtered:
            # Partial overrides merge into the defaults; category names stay as given.
            weights = dict(DEFAULT_BASE_WEIGHTS)
            weights.update(
                {str(k): float(v) for k, v in dict(filtered["base_weights"]).items()}
            )
            filtered["base_weights"] = weights
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Consensus / recommendation                                            #
# ===================================================================== #

@dataclass(frozen=True)
class ConsensusConfig:
    """Thresholds for consensus, regime classification and trading.

    Attributes
    ----------
    min_edge_threshold:
        Minimum |consensus - market| required to trade.
    high_disagreement_threshold:
        Disagreement index above which the regime is high-uncertainty.
    narrow_band_width:
        Maximum band width for the high-confidence regime.
    band_scale:
        Numerator of the band half-width (divided by total confidence).
    conflict_band_multiplier:
        Band widening factor under high signal conflict.
    conflict_penalty:
        Disagreement-index penalty under high signal conflict.
    """

    min_edge_threshold: float = 0.05
    high_disagreement_threshold: float = 0.15
    narrow_band_width: float = 0.15
    band_scale: float = 0.1
    conflict_band_multiplier: float = 1.5
    conflict_penalty: float = 0.05

    def validate(self) -> None:
        for name in (
            "min_edge_threshold",
            "high_disagreement_threshold",
            "narrow_band_width",
            "conflict_penalty",
        ):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.band_scale <= 0.0:
            raise ValueError(f"band_scale must be > 0, got {self.band_scale}")
        if self.conflict_band_multiplier < 1.0:
            raise ValueError(
                "conflict_band_multiplier must be >= 1, "
                f"got {self.conflict_band_multiplier}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConsensusConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Orchestration / logging                                               #
# ===================================================================== #

@dataclass(frozen=True)
class OrchestrationConfig:
    """Pipeline machinery parameters.

    ``step_limit`` bounds the number of steps one run may take; each stage
    and each agent invocation consumes one.
    """

    step_limit: int = 25

    def validate(self) -> None:
        if self.step_limit < 1:
            raise ValueError(f"step_limit must be >= 1, got {self.step_limit}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OrchestrationConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


_VALID_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


@dataclass(frozen=True)
class LoggingConfig:
    """Log verbosity and audit retention."""

    level: str = "info"
    audit_trail_retention_days: int = 30

    def validate(self) -> None:
        if self.level.lower() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"level must be one of {sorted(_VALID_LOG_LEVELS)}, "
                f"got '{self.level}'"
            )
        if self.audit_trail_retention_days < 0:
            raise ValueError(
                "audit_trail_retention_days must be >= 0, "
                f"got {self.audit_trail_retention_days}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoggingConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Engine configuration                                                  #
# ===================================================================== #

@dataclass(frozen=True)
class EngineConfig:
    """Aggregate of every section.  Constructed once and injected."""

    agents: AgentsConfig = field(default_factory=AgentsConfig)
    signal_fusion: SignalFusionConfig = field(default_factory=SignalFusionConfig)
    consensus: ConsensusConfig = field(default_factory=ConsensusConfig)
    orchestration: OrchestrationConfig = field(default_factory=OrchestrationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.agents.validate()
        self.signal_fusion.validate()
        self.consensus.validate()
        self.orchestration.validate()
        self.logging.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "agents": self.agents.to_dict(),
            "signal_fusion": self.signal_fusion.to_dict(),
            "consensus": self.consensus.to_dict(),
            "orchestration": self.orchestration.to_dict(),
            "logging": self.logging.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineConfig:
        sections = _normalize_keys(data)
        kwargs: dict[str, Any] = {}
        for name, section_cls in _SECTION_MAP.items():
            section = sections.get(name)
            if section is None:
                continue
            if not isinstance(section, Mapping):
                raise ValueError(f"section '{name}' must be an object")
            kwargs[name] = section_cls.from_dict(section)
        unknown = set(sections) - set(_SECTION_MAP)
        if unknown:
            logger.debug("Ignoring unknown config sections: %s", sorted(unknown))
        cfg = cls(**kwargs)
        cfg.validate()
        return cfg


_SECTION_MAP: dict[str, type] = {
    "agents": AgentsConfig,
    "signal_fusion": SignalFusionConfig,
    "consensus": ConsensusConfig,
    "orchestration": OrchestrationConfig,
    "logging": LoggingConfig,
}


# ===================================================================== #
#  Loaders                                                               #
# ===================================================================== #

def _from_raw(raw: Any, source: str) -> EngineConfig:
    if raw is None:
        return EngineConfig()
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Top-level config must be an object", source=source)
    try:
        return EngineConfig.from_dict(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc), source=source) from exc


def load_config_from_json(json_str: str) -> EngineConfig:
    """Parse a JSON document into an ``EngineConfig``."""
    try:
        raw = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON: {exc}", source="json") from exc
    return _from_raw(raw, "json")


def load_config_from_yaml(yaml_str: str) -> EngineConfig:
    """Parse a YAML document into an ``EngineConfig``."""
    try:
        raw = yaml.safe_load(yaml_str)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML: {exc}", source="yaml") from exc
    return _from_raw(raw, "yaml")


def load_config_file(path: str | Path) -> EngineConfig:
    """Load a ``.json``, ``.yaml`` or ``.yml`` config file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return load_config_from_yaml(text)
    return load_config_from_json(text)


# env var -> (section, field, parser)
_ENV_MAP: dict[str, tuple[str, str, type]] = {
    "AGENT_TIMEOUT_MS": ("agents", "timeout_ms", int),
    "MIN_AGENTS_REQUIRED": ("agents", "min_agents_required", int),
    "MIN_EDGE_THRESHOLD": ("consensus", "min_edge_threshold", float),
    "HIGH_DISAGREEMENT_THRESHOLD": ("consensus", "high_disagreement_threshold", float),
    "ORCHESTRATION_STEP_LIMIT": ("orchestration", "step_limit", int),
    "LOG_LEVEL": ("logging", "level", str),
    "AUDIT_TRAIL_RETENTION_DAYS": ("logging", "audit_trail_retention_days", int),
}


def load_config_from_env(
    environ: Mapping[str, str] | None = None,
    base: EngineConfig | None = None,
) -> EngineConfig:
    """Overlay environment variables on *base* (defaults when omitted)."""
    environ = os.environ if environ is None else environ
    data = (base or EngineConfig()).to_dict()
    for var, (section, name, parser) in _ENV_MAP.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        try:
            data[section][name] = parser(value)
        except ValueError as exc:
            raise ConfigurationError(
                f"{var}={value!r} is not a valid {parser.__name__}", source="env"
            ) from exc
    return _from_raw(data, "env")


def configure_logging(level: str = "info") -> None:
    """Apply *level* to the ``market_intelligence`` logger hierarchy."""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        raise ConfigurationError(f"Unknown log level '{level}'", source="logging")
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    logging.getLogger("market_intelligence").setLevel(numeric)
