"""Per-token pricing: remote price table with a 24h file cache and fallbacks."""

import http.client
import logging
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable

import orjson

from claude_usage_analytics.errors import PricingFetchError
from claude_usage_analytics.types import ModelPricing, PricingCache, TokenUsage

logger = logging.getLogger(__name__)

OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"
USER_AGENT = "claude-usage-analytics/0.1"
DEFAULT_TIMEOUT_S = 10.0
CACHE_TTL_S = 24 * 3600
CACHE_FILENAME = "pricing_cache.json"

CACHE_CREATION_MULTIPLIER = 1.25
CACHE_READ_MULTIPLIER = 0.1

TIER_KEYWORDS = ("opus", "sonnet", "haiku")

# Per 1M tokens
FALLBACK_COSTS: dict[str, dict[str, float]] = {
    "opus":   {"input": 15.00, "output": 75.00, "cache_create": 18.75,  "cache_read": 1.50},
    "sonnet": {"input": 3.00,  "output": 15.00, "cache_create": 3.75,   "cache_read": 0.30},
    "haiku":  {"input": 0.25,  "output": 1.25,  "cache_create": 0.3125, "cache_read": 0.025},
}

Fetcher = Callable[[float], dict[str, ModelPricing]]


def model_tier(model: str) -> str | None:
    lowered = model.lower()
    for tier in TIER_KEYWORDS:
        if tier in lowered:
            return tier
    return None


def fallback_pricing(model: str) -> ModelPricing:
    """Hardcoded pricing by tier keyword; unknown models are priced as sonnet."""
    lowered = model.lower()
    if "opus" in lowered:
        costs = FALLBACK_COSTS["opus"]
    elif "haiku" in lowered:
        costs = FALLBACK_COSTS["haiku"]
    else:
        costs = FALLBACK_COSTS["sonnet"]
    return ModelPricing(
        input_cost_per_token=costs["input"] / 1_000_000,
        output_cost_per_token=costs["output"] / 1_000_000,
        cache_creation_cost_per_token=costs["cache_create"] / 1_000_000,
        cache_read_cost_per_token=costs["cache_read"] / 1_000_000,
    )


def calculate_cost(usage: TokenUsage, pricing: ModelPricing) -> float:
    return (
        usage.input_tokens * pricing.input_cost_per_token
        + usage.output_tokens * pricing.output_cost_per_token
        + usage.cache_creation_tokens * pricing.cache_creation_cost_per_token
        + usage.cache_read_tokens * pricing.cache_read_cost_per_token
    )


# ---------------------------------------------------------------------------
# Cache file
# ---------------------------------------------------------------------------

def load_pricing_cache(path: str | Path, now: float | None = None) -> PricingCache | None:
    """Load the cache file; None if missing, unparsable, empty or expired."""
    if now is None:
        now = time.time()
    try:
        raw = orjson.loads(Path(path).read_bytes())
    except FileNotFoundError:
        return None
    except (OSError, orjson.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable pricing cache %s: %s", path, e)
        return None

    if not isinstance(raw, dict) or not isinstance(raw.get("models"), dict):
        return None
    timestamp = raw.get("timestamp")
    if not isinstance(timestamp, (int, float)) or now - timestamp >= CACHE_TTL_S:
        return None

    models = {}
    for model_id, entry in raw["models"].items():
        if not isinstance(entry, dict):
            continue
        try:
            models[model_id] = ModelPricing.from_dict(entry)
        except (TypeError, ValueError):
            continue
    if not models:
        return None
    return PricingCache(models=models, timestamp=float(timestamp))


def save_pricing_cache(path: str | Path, cache: PricingCache):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "models": {model_id: p.to_dict() for model_id, p in cache.models.items()},
        "timestamp": int(cache.timestamp),
    }
    path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))


# ---------------------------------------------------------------------------
# Remote price list
# ---------------------------------------------------------------------------

def _price(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def parse_remote_models(payload) -> dict[str, ModelPricing]:
    """Extract Claude models from an OpenRouter ``/models`` response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise PricingFetchError("Unexpected price list schema")

    models = {}
    for entry in payload["data"]:
        if not isinstance(entry, dict):
            continue
        model_id = entry.get("id")
        pricing = entry.get("pricing")
        if not isinstance(model_id, str) or "claude" not in model_id.lower():
            continue
        if not isinstance(pricing, dict):
            continue
        prompt = _price(pricing.get("prompt"))
        completion = _price(pricing.get("completion"))
        if prompt is None or completion is None or prompt < 0 or completion < 0:
            continue
        cache_write = _price(pricing.get("input_cache_write"))
        cache_read = _price(pricing.get("input_cache_read"))
        models[model_id] = ModelPricing(
            input_cost_per_token=prompt,
            output_cost_per_token=completion,
            cache_creation_cost_per_token=cache_write if cache_write is not None and cache_write >= 0
            else prompt * CACHE_CREATION_MULTIPLIER,
            cache_read_cost_per_token=cache_read if cache_read is not None and cache_read >= 0
            else prompt * CACHE_READ_MULTIPLIER,
        )
    return models


def fetch_remote_pricing(timeout: float = DEFAULT_TIMEOUT_S) -> dict[str, ModelPricing]:
    """Download the price list. Any failure, timeouts included, raises PricingFetchError."""
    req = urllib.request.Request(OPENROUTER_MODELS_URL, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read()
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        raise PricingFetchError(f"Price list request failed: {e}") from e
    try:
        payload = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise PricingFetchError(f"Price list is not JSON: {e}") from e
    return parse_remote_models(payload)


class PricingResolver:
    """Resolves a model name to per-token pricing.

    ``resolve_cached`` and ``calculate_cost_cached`` never touch the network
    and are safe for interactive callers. ``resolve`` and
    ``update_cache_if_needed`` may block on the remote fetch and belong on a
    background thread.
    """

    def __init__(
        self,
        cache_path: str | Path,
        fetcher: Fetcher = fetch_remote_pricing,
        timeout: float = DEFAULT_TIMEOUT_S,
        remote_enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self._cache_path = Path(cache_path)
        self._fetcher = fetcher
        self._timeout = timeout
        self._remote_enabled = remote_enabled
        self._clock = clock
        self._cache: PricingCache | None = None
        self._cache_mtime: float | None = None
        self._loaded = False

    @property
    def cache_path(self) -> Path:
        return self._cache_path

    def _file_mtime(self) -> float | None:
        try:
            return self._cache_path.stat().st_mtime
        except OSError:
            return None

    def reload_if_changed(self) -> bool:
        """Re-read the cache file when it was rewritten since the last load.

        Another resolver (the refresh worker's) may have stored a newer table.
        Returns True when the file was read again.
        """
        mtime = self._file_mtime()
        if self._loaded and mtime == self._cache_mtime:
            return False
        self._cache = load_pricing_cache(self._cache_path, now=self._clock())
        self._cache_mtime = mtime
        self._loaded = True
        return True

    def _current_cache(self) -> PricingCache | None:
        if not self._loaded:
            self.reload_if_changed()
        if self._cache is not None and self._clock() - self._cache.timestamp >= CACHE_TTL_S:
            self._cache = None
        return self._cache

    def is_cache_valid(self) -> bool:
        return self._current_cache() is not None

    def lookup(self, model: str) -> ModelPricing | None:
        """Cache-only lookup: exact id first, then a same-tier Claude model."""
        cache = self._current_cache()
        if cache is None:
            return None
        if model in cache.models:
            return cache.models[model]
        if "claude" not in model.lower():
            return None
        tier = model_tier(model)
        if tier is None:
            return None
        for model_id in sorted(cache.models):
            lowered = model_id.lower()
            if "claude" in lowered and tier in lowered:
                return cache.models[model_id]
        return None

    def resolve_cached(self, model: str) -> ModelPricing:
        return self.lookup(model) or fallback_pricing(model)

    def resolve(self, model: str) -> ModelPricing:
        pricing = self.lookup(model)
        if pricing is not None:
            return pricing
        if not self.is_cache_valid():
            self.update_cache_if_needed()
            pricing = self.lookup(model)
            if pricing is not None:
                return pricing
        return fallback_pricing(model)

    def update_cache_if_needed(self) -> bool:
        """Fetch and persist the price list when the cache is missing or expired.

        Returns True when a fresh table was stored.
        """
        if self.is_cache_valid() or not self._remote_enabled:
            return False
        try:
            models = self._fetcher(self._timeout)
        except PricingFetchError as e:
            logger.warning("Pricing fetch failed, using fallback prices: %s", e)
            return False
        if not models:
            logger.warning("Pricing fetch returned no Claude models")
            return False

        cache = PricingCache(models=models, timestamp=self._clock())
        try:
            save_pricing_cache(self._cache_path, cache)
        except OSError as e:
            logger.warning("Could not write pricing cache %s: %s", self._cache_path, e)
        self._cache = cache
        self._cache_mtime = self._file_mtime()
        self._loaded = True
        logger.info("Pricing cache updated with %d models", len(models))
        return True

    def calculate_cost_cached(self, usage: TokenUsage, model: str) -> float:
        pricing = self.lookup(model)
        if pricing is not None:
            return calculate_cost(usage, pricing)
        return round(calculate_cost(usage, fallback_pricing(model)), 6)

    def calculate_cost(self, usage: TokenUsage, model: str) -> float:
        self.update_cache_if_needed()
        return self.calculate_cost_cached(usage, model)
