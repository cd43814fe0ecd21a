import math
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, MutableMapping, Optional

from .errors import ConfigParseError
from .logging_utils import get_logger


NUMERIC_TYPES = ("exp", "float", "int")
ALGORITHMS = ("up", "down", "random")
FIELDS = ("SIZE", "LIMIT", "TAIL", "MOD")

TYPE_DEFAULTS = {"SIZE": 10, "LIMIT": 10, "TAIL": 1, "MOD": 10000.0}
RAND_DEFAULTS = {"SIZE": 4, "LIMIT": 10000, "TAIL": 8, "MOD": 10000.0}

# Upper bounds keep every rendered value finite: limit * mod <= 1e30,
# and step * size stays far below float range.
FIELD_MINIMUMS = {"SIZE": 1, "LIMIT": 0, "TAIL": 0, "MOD": 0.0}
FIELD_MAXIMUMS = {"SIZE": 100_000, "LIMIT": 10**15, "TAIL": 32, "MOD": 1e15}

log = get_logger("synth-metrics.config")


@dataclass(frozen=True)
class TypeParams:
    size: int
    limit: int
    tail: int
    mod: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_int(name: str, raw: str, minimum: int = 0, maximum: Optional[int] = None) -> int:
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ConfigParseError(name, raw, "not an integer") from None
    if value < minimum:
        raise ConfigParseError(name, raw, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ConfigParseError(name, raw, f"must be <= {maximum}")
    return value


def parse_float(name: str, raw: str, minimum: float = 0.0, maximum: Optional[float] = None) -> float:
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise ConfigParseError(name, raw, "not a number") from None
    if not math.isfinite(value):
        raise ConfigParseError(name, raw, "must be finite")
    if value < minimum:
        raise ConfigParseError(name, raw, f"must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ConfigParseError(name, raw, f"must be <= {maximum:g}")
    return value


def parse_field(name: str, field: str, raw: str) -> Any:
    """Parse `raw` with the bounds of a SIZE/LIMIT/TAIL/MOD field."""
    if field == "MOD":
        return parse_float(name, raw, minimum=FIELD_MINIMUMS[field], maximum=FIELD_MAXIMUMS[field])
    if field in FIELD_MAXIMUMS:
        return parse_int(name, raw, minimum=FIELD_MINIMUMS[field], maximum=FIELD_MAXIMUMS[field])
    raise ConfigParseError(name, raw, f"unknown field {field}")


class ConfigSource:
    """Name -> value lookups over a mutable mapping (the process environment by default).

    Missing or empty names yield the caller's default. Values that fail to
    parse, or fall outside the bounds, are logged and replaced by the default.
    """

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None) -> None:
        self._env: MutableMapping[str, str] = os.environ if environ is None else environ

    def get_string(self, name: str) -> Optional[str]:
        value = self._env.get(name)
        if value is None or value == "":
            return None
        return value

    def get_int(self, name: str, default: int, minimum: int = 0, maximum: Optional[int] = None) -> int:
        raw = self.get_string(name)
        if raw is None:
            return default
        try:
            return parse_int(name, raw, minimum=minimum, maximum=maximum)
        except ConfigParseError as e:
            log.warning("config.invalid", extra={"param": name, "raw": raw, "reason": e.reason, "default": default})
            return default

    def get_float(self, name: str, default: float, minimum: float = 0.0, maximum: Optional[float] = None) -> float:
        raw = self.get_string(name)
        if raw is None:
            return default
        try:
            return parse_float(name, raw, minimum=minimum, maximum=maximum)
        except ConfigParseError as e:
            log.warning("config.invalid", extra={"param": name, "raw": raw, "reason": e.reason, "default": default})
            return default

    def set(self, name: str, value: Any) -> None:
        self._env[name] = str(value)


def _params(source: ConfigSource, prefix: str, defaults: Dict[str, Any]) -> TypeParams:
    def _int(fld: str) -> int:
        return source.get_int(f"{prefix}_{fld}", defaults[fld], minimum=FIELD_MINIMUMS[fld], maximum=FIELD_MAXIMUMS[fld])

    return TypeParams(
        size=_int("SIZE"),
        limit=_int("LIMIT"),
        tail=_int("TAIL"),
        mod=source.get_float(f"{prefix}_MOD", defaults["MOD"], maximum=FIELD_MAXIMUMS["MOD"]),
    )


def params_for_type(source: ConfigSource, numeric_type: str) -> TypeParams:
    return _params(source, numeric_type.upper(), TYPE_DEFAULTS)


def random_params(source: ConfigSource) -> TypeParams:
    return _params(source, "RAND", RAND_DEFAULTS)


def build_effective_config(source: Optional[ConfigSource] = None, numeric_types: Iterable[str] = NUMERIC_TYPES) -> Dict[str, Any]:
    """Merge order: env overrides -> defaults.

    Server settings plus the live per-type and randomized buffer parameters.
    """
    source = source or ConfigSource()
    return {
        "host": source.get_string("HOST") or "0.0.0.0",
        "port": source.get_int("PORT", 8899, minimum=1),
        "tick_interval_s": source.get_float("TICK_INTERVAL_S", 1.0),
        "log_level": (source.get_string("LOG_LEVEL") or "INFO").upper(),
        "types": {t: params_for_type(source, t).as_dict() for t in numeric_types},
        "random": random_params(source).as_dict(),
    }
