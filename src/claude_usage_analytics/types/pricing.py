"""Per-token model pricing types."""

from dataclasses import dataclass, field


@dataclass
class ModelPricing:
    input_cost_per_token: float = 0.0
    output_cost_per_token: float = 0.0
    cache_creation_cost_per_token: float = 0.0
    cache_read_cost_per_token: float = 0.0

    def to_dict(self) -> dict:
        return {
            "input_cost_per_token": self.input_cost_per_token,
            "output_cost_per_token": self.output_cost_per_token,
            "cache_creation_cost_per_token": self.cache_creation_cost_per_token,
            "cache_read_cost_per_token": self.cache_read_cost_per_token,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelPricing":
        return cls(
            input_cost_per_token=float(data.get("input_cost_per_token", 0.0)),
            output_cost_per_token=float(data.get("output_cost_per_token", 0.0)),
            cache_creation_cost_per_token=float(data.get("cache_creation_cost_per_token", 0.0)),
            cache_read_cost_per_token=float(data.get("cache_read_cost_per_token", 0.0)),
        )


@dataclass
class PricingCache:
    """A persisted snapshot of the remote price table."""
    models: dict[str, ModelPricing] = field(default_factory=dict)
    timestamp: float = 0.0  # Unix seconds of the fetch
