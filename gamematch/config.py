from __future__ import annotations
import os
import json
import re
import math
import logging
from dataclasses import asdict, is_dataclass
from numbers import Integral, Real
from typing import Any, Dict, List, Mapping
from pathlib import Path
import copy

from .config_types import AppConfig, MatchingConfig, RankingConfig

logger = logging.getLogger(__name__)

WEIGHT_SUM_TOLERANCE = 1e-3
MAX_RESULTS_LIMIT = 100

_DEFAULTS: Dict[str, Any] = {
    "log_level": "INFO",
    "matching": {
        "threshold": 0.6,
        "max_results": 10,
        "weights": {
            "title": 0.6,
            "description": 0.3,
            "tags": 0.1,
        },
        "algorithm_weights": {
            "levenshtein": 0.4,
            "cosine": 0.4,
            "jaccard": 0.2,
        },
        "case_sensitive": False,
        "fuzzy_match": True,
        "normalize_names": False,
    },
    "batch": {"workers": 1},
    "ranking": {
        "dimension_weights": {
            "similarity": 0.5,
            "quality": 0.3,
            "completeness": 0.2,
        },
        "quality_weights": {
            "completeness": 0.5,
            "tag_richness": 0.25,
            "description_quality": 0.25,
        },
        "deduplicate": True,
        "dedup_strategy": "content",
        "top_n": 10,
        "min_similarity": 0.3,
        "min_quality": 0.5,
    },
}

_WEIGHT_GROUPS = ("weights", "algorithm_weights")
_BOOL_KEYS = ("case_sensitive", "fuzzy_match", "normalize_names")
_RANKING_WEIGHT_GROUPS = ("dimension_weights", "quality_weights")
DEDUP_STRATEGIES = ("title", "content", "similarity", "normalized", "id")


class ConfigurationError(ValueError):
    """Raised when a (merged) matching configuration fails validation.

    ``errors`` holds one human-readable line per violated rule.
    """

    def __init__(self, errors: List[str], section: str = "matching"):
        self.errors = list(errors)
        self.section = section
        super().__init__(f"Invalid {section} configuration: " + "; ".join(self.errors))


def deep_merge(a: Dict[str, Any], b: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge dict b into a (shallow copies) returning new dict.
    Nested dicts are merged recursively; other values override.
    """
    result = dict(a)
    for k, v in b.items():
        if isinstance(v, Mapping) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)  # type: ignore[arg-type]
        else:
            result[k] = v
    return result


# --- Matching config defaults & validation ---------------------------------

def get_default_config() -> MatchingConfig:
    """Return a fresh baseline matching configuration."""
    return MatchingConfig.from_dict(copy.deepcopy(_DEFAULTS["matching"]))


def _as_mapping(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _weight_group_errors(name: str, group: Any, section: str = "matching") -> List[str]:
    group = _as_mapping(group)
    if not isinstance(group, Mapping):
        return [f"{name} must be a mapping"]
    defaults = _DEFAULTS[section][name]
    unknown = sorted(set(group) - set(defaults))
    if unknown:
        return [f"{name} has unknown keys: {', '.join(map(str, unknown))}"]
    # Entries left out are taken from the defaults, as the merge does
    completed = {**defaults, **group}
    errors = []
    for key, value in completed.items():
        if not _is_number(value):
            errors.append(f"{name}.{key} must be a number")
        elif value < 0:
            errors.append(f"{name}.{key} must be non-negative (got {value})")
    if not errors:
        total = sum(completed.values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            errors.append(f"{name} must sum to 1.0 (got {total:.4f})")
    return errors


def config_errors(partial: Any) -> List[str]:
    """List every rule a (partial) matching config violates.

    Only the keys present are checked; absent keys are assumed to come from
    the defaults.
    """
    partial = _as_mapping(partial)
    if not isinstance(partial, Mapping):
        return ["config must be a mapping"]

    errors: List[str] = []
    for key, value in partial.items():
        if key == "threshold":
            if not _is_number(value):
                errors.append("threshold must be a number")
            elif not 0.0 <= value <= 1.0:
                errors.append(f"threshold must be within [0, 1] (got {value})")
        elif key == "max_results":
            if not isinstance(value, Integral) or isinstance(value, bool):
                errors.append("max_results must be an integer")
            elif not 1 <= value <= MAX_RESULTS_LIMIT:
                errors.append(f"max_results must be within [1, {MAX_RESULTS_LIMIT}] (got {value})")
        elif key in _WEIGHT_GROUPS:
            errors.extend(_weight_group_errors(key, value))
        elif key in _BOOL_KEYS:
            if not isinstance(value, bool):
                errors.append(f"{key} must be a boolean")
        else:
            errors.append(f"unknown config key: {key}")
    return errors


def validate_config(partial: Any) -> bool:
    """Return True when the (partial) matching config is valid. Never raises."""
    try:
        return not config_errors(partial)
    except Exception as e:  # pragma: no cover - unexpected value types
        logger.debug(f"validate_config failed on {partial!r}: {e}")
        return False


def merge_matching_config(override: Any = None) -> MatchingConfig:
    """Deep-merge a partial override onto the defaults and validate the result.

    Args:
        override: None, a mapping of matching keys, or a MatchingConfig

    Returns:
        MatchingConfig ready for scoring

    Raises:
        ConfigurationError: If the override or the merged config is invalid
    """
    override = _as_mapping(override) if override is not None else {}
    errors = config_errors(override)
    if not errors:
        plain = {k: _as_mapping(v) for k, v in override.items()}
        merged = deep_merge(copy.deepcopy(_DEFAULTS["matching"]), plain)
        errors = config_errors(merged)
    if errors:
        logger.warning(f"Rejected matching config: {'; '.join(errors)}")
        raise ConfigurationError(errors)
    return MatchingConfig.from_dict(merged)


def _fraction_error(key: str, value: Any) -> List[str]:
    if not _is_number(value):
        return [f"{key} must be a number"]
    if not 0.0 <= value <= 1.0:
        return [f"{key} must be within [0, 1] (got {value})"]
    return []


def ranking_config_errors(partial: Any) -> List[str]:
    """List every rule a (partial) ranking config violates."""
    partial = _as_mapping(partial)
    if not isinstance(partial, Mapping):
        return ["ranking config must be a mapping"]

    errors: List[str] = []
    for key, value in partial.items():
        if key in _RANKING_WEIGHT_GROUPS:
            errors.extend(_weight_group_errors(key, value, section="ranking"))
        elif key == "deduplicate":
            if not isinstance(value, bool):
                errors.append("deduplicate must be a boolean")
        elif key == "dedup_strategy":
            if value not in DEDUP_STRATEGIES:
                errors.append(f"dedup_strategy must be one of {', '.join(DEDUP_STRATEGIES)} (got {value!r})")
        elif key == "top_n":
            if not isinstance(value, Integral) or isinstance(value, bool):
                errors.append("top_n must be an integer")
            elif not 1 <= value <= MAX_RESULTS_LIMIT:
                errors.append(f"top_n must be within [1, {MAX_RESULTS_LIMIT}] (got {value})")
        elif key in ("min_similarity", "min_quality"):
            errors.extend(_fraction_error(key, value))
        else:
            errors.append(f"unknown ranking key: {key}")
    return errors


def merge_ranking_config(override: Any = None) -> RankingConfig:
    """Deep-merge a partial ranking override onto the defaults and validate it.

    Raises:
        ConfigurationError: If the override or the merged config is invalid
    """
    override = _as_mapping(override) if override is not None else {}
    errors = ranking_config_errors(override)
    if not errors:
        plain = {k: _as_mapping(v) for k, v in override.items()}
        merged = deep_merge(copy.deepcopy(_DEFAULTS["ranking"]), plain)
        errors = ranking_config_errors(merged)
    if errors:
        logger.warning(f"Rejected ranking config: {'; '.join(errors)}")
        raise ConfigurationError(errors, section="ranking")
    return RankingConfig.from_dict(merged)


# --- Application config loading --------------------------------------------

ENV_PREFIX = "GAMEMATCH__"
_dotenv_line = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*?)\s*$")
_quoted_value = re.compile(r"""^(['"])(.*)\1""")


def _dotenv_value(raw: str) -> str:
    """Unquote a .env value; unquoted values lose a trailing ``# comment``."""
    quoted = _quoted_value.match(raw)
    if quoted:
        return quoted.group(2)
    return raw.split('#', 1)[0].rstrip()


def _load_dotenv(path: Path) -> Dict[str, str]:
    if not path.is_file():
        return {}
    values: Dict[str, str] = {}
    for line in path.read_text(encoding='utf-8').splitlines():
        if line.lstrip().startswith('#'):
            continue
        m = _dotenv_line.match(line)
        if m:
            values[m.group(1)] = _dotenv_value(m.group(2))
    return values


def _apply_env(cfg: Dict[str, Any], env: Mapping[str, str]) -> None:
    """Write ``GAMEMATCH__SECTION__KEY`` entries into cfg in place.

    A key that would turn a section into a scalar, or descend into a scalar,
    is skipped with a warning.
    """
    for raw_key, value in env.items():
        *sections, leaf = raw_key[len(ENV_PREFIX):].lower().split("__")
        target = cfg
        for section in sections:
            target = target.setdefault(section, {})
            if not isinstance(target, dict):
                break
        coerced = coerce_scalar(value)
        if not isinstance(target, dict):
            logger.warning(f"Ignoring {raw_key}: {'.'.join(sections)} is not a section")
        elif isinstance(target.get(leaf), dict):
            if isinstance(coerced, dict):
                target[leaf] = deep_merge(target[leaf], coerced)
            else:
                logger.warning(f"Ignoring {raw_key}: {leaf} is a section, got {value!r}")
        else:
            target[leaf] = coerced


def load_config(overrides: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Build the application config: defaults, then .env, then environment, then overrides.

    Environment keys use the ``GAMEMATCH__SECTION__KEY`` form, e.g.
    ``GAMEMATCH__MATCHING__THRESHOLD=0.7`` or
    ``GAMEMATCH__MATCHING__WEIGHTS='{"title": 0.8, "description": 0.1, "tags": 0.1}'``.
    A JSON object merges into an existing section instead of replacing it.

    Under pytest (PYTEST_CURRENT_TEST set) the .env file is ignored unless
    GAMEMATCH_ENABLE_DOTENV is set.

    The result is not validated here; the matching section is validated when
    it reaches the engine.

    Args:
        overrides: Values deep-merged last

    Returns:
        Plain nested dict (see load_typed_config() for the dataclass form)
    """
    use_dotenv = bool(os.environ.get('GAMEMATCH_ENABLE_DOTENV')) or 'PYTEST_CURRENT_TEST' not in os.environ
    env: Dict[str, str] = _load_dotenv(Path('.env')) if use_dotenv else {}
    env.update(os.environ)

    cfg: Dict[str, Any] = copy.deepcopy(_DEFAULTS)
    _apply_env(cfg, {k: v for k, v in env.items() if k.startswith(ENV_PREFIX)})
    if overrides:
        cfg = deep_merge(cfg, overrides)

    _configure_logging(cfg.get('log_level', 'INFO'))
    return cfg


def load_typed_config(overrides: Dict[str, Any] | None = None) -> AppConfig:
    """Same as load_config() but returns an AppConfig."""
    return AppConfig.from_dict(load_config(overrides))


def _configure_logging(level_name: str) -> None:
    """Point the root logger at the configured level (message-only format)."""
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format='%(message)s', force=True)


def coerce_scalar(value: str) -> Any:
    """Turn an environment string into bool, int, float, JSON or str.

    Only true/yes/on and false/no/off become booleans, so ``1`` stays an int.
    """
    txt = value.strip()
    if txt[:1] in ('[', '{') and txt[-1:] in (']', '}'):
        try:
            return json.loads(txt)
        except ValueError:
            pass
    flag = txt.lower()
    if flag in ("true", "yes", "on"):
        return True
    if flag in ("false", "no", "off"):
        return False
    try:
        return int(txt)
    except ValueError:
        pass
    try:
        return float(txt)
    except ValueError:
        return txt


__all__ = [
    "ConfigurationError",
    "get_default_config",
    "validate_config",
    "config_errors",
    "merge_matching_config",
    "ranking_config_errors",
    "merge_ranking_config",
    "load_config",
    "load_typed_config",
    "deep_merge",
    "coerce_scalar",
]
