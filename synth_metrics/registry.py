from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .buffers import Buffer, build_buffer, generate_values
from .config_loader import (
    ALGORITHMS,
    FIELDS,
    NUMERIC_TYPES,
    ConfigSource,
    TypeParams,
    params_for_type,
    parse_field,
    random_params,
)
from .errors import ConfigParseError, InvalidParameter, UnknownAlgorithm, UnknownType
from .logging_utils import get_logger


log = get_logger("synth-metrics.registry")


@dataclass
class MetricType:
    """One numeric type: a shift register per algorithm plus a randomized snapshot.

    `lock` covers the snapshot and serializes rebuilds of the registers;
    each Buffer additionally guards its own cursor.
    """

    name: str
    registers: Dict[str, Buffer]
    random_snapshot: List[str]
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def register(self, algorithm: str) -> Buffer:
        try:
            return self.registers[algorithm]
        except KeyError:
            raise UnknownAlgorithm(self.name, algorithm) from None

    def random_values(self) -> Tuple[str, ...]:
        with self.lock:
            return tuple(self.random_snapshot)

    def random_value(self) -> str:
        with self.lock:
            return self.random_snapshot[0]

    def refresh(self, rand: TypeParams) -> None:
        """Regenerate the snapshot and advance every register by one step."""
        with self.lock:
            try:
                snapshot = generate_values(self.name, "random", rand.size, rand.limit, rand.tail, rand.mod)
            except Exception:
                log.exception("tick.snapshot_failed", extra={"type": self.name})
                raise
            else:
                self.random_snapshot = snapshot
            finally:
                for buff in self.registers.values():
                    buff.advance()

    def rebuild(self, params: TypeParams) -> List[str]:
        """Regenerate every register from `params`; all values are built before any swap."""
        with self.lock:
            fresh = {
                algo: generate_values(self.name, algo, params.size, params.limit, params.tail, params.mod)
                for algo in self.registers
            }
            for algo, values in fresh.items():
                self.registers[algo].replace_values(values)
            return [self.registers[algo].name for algo in fresh]


class MetricRegistry:
    """Numeric type -> MetricType, populated eagerly and never resized.

    Args:
        types (Dict[str, MetricType]): Fully built entries.
        source (ConfigSource): Where parameters are read from and reset into.
    """

    def __init__(self, types: Dict[str, MetricType], source: ConfigSource) -> None:
        self._types = types
        self.source = source

    @classmethod
    def initialize(
        cls,
        numeric_types: Iterable[str] = NUMERIC_TYPES,
        algorithms: Iterable[str] = ALGORITHMS,
        source: Optional[ConfigSource] = None,
    ) -> "MetricRegistry":
        source = source or ConfigSource()
        algorithms = list(algorithms)
        rand = random_params(source)
        types: Dict[str, MetricType] = {}
        for mt in numeric_types:
            p = params_for_type(source, mt)
            registers = {algo: build_buffer(mt, algo, p.size, p.limit, p.tail, p.mod) for algo in algorithms}
            snapshot = generate_values(mt, "random", rand.size, rand.limit, rand.tail, rand.mod)
            types[mt] = MetricType(name=mt, registers=registers, random_snapshot=snapshot)
        log.info("registry.initialized", extra={"types": list(types), "algorithms": algorithms})
        return cls(types, source)

    def __iter__(self) -> Iterator[MetricType]:
        return iter(self._types.values())

    def __contains__(self, numeric_type: object) -> bool:
        return numeric_type in self._types

    @property
    def numeric_types(self) -> List[str]:
        return list(self._types)

    def lookup_type(self, numeric_type: str) -> MetricType:
        try:
            return self._types[numeric_type]
        except KeyError:
            raise UnknownType(numeric_type) from None

    def lookup(self, numeric_type: str, algorithm: str) -> Buffer:
        return self.lookup_type(numeric_type).register(algorithm)

    def tick(self) -> int:
        """Refresh every type independently; returns the number of types that failed."""
        rand = random_params(self.source)
        failures = 0
        for mt in self._types.values():
            try:
                mt.refresh(rand)
            except Exception:
                failures += 1
        return failures

    def resolve_parameter(self, name: str) -> Tuple[str, str]:
        """Split `{TYPE}_{FIELD}` into a known (numeric_type, field) pair.

        Raises:
            InvalidParameter: if either half is unknown.
        """
        prefix, sep, fld = str(name).rpartition("_")
        numeric_type = prefix.lower()
        if not sep or fld not in FIELDS or prefix != prefix.upper() or numeric_type not in self._types:
            raise InvalidParameter(f"No such parameter: {name}", extra={"param": name})
        return numeric_type, fld

    def reset(self, name: str, value: str) -> List[str]:
        """Rewrite one parameter and rebuild every buffer of its type.

        Returns:
            List[str]: `{type}_{algorithm}` names of the rebuilt buffers.

        Raises:
            InvalidParameter: unknown name or unacceptable value; nothing is changed.
        """
        numeric_type, fld = self.resolve_parameter(name)
        try:
            parsed = parse_field(name, fld, value)
        except ConfigParseError as e:
            raise InvalidParameter(f"Invalid value for {name}: {e.reason}", extra={"param": name, "value": value}) from e
        mt = self.lookup_type(numeric_type)
        with mt.lock:
            current = params_for_type(self.source, numeric_type)
            params = TypeParams(**{**current.as_dict(), fld.lower(): parsed})
            try:
                rebuilt = mt.rebuild(params)
            except (OverflowError, ValueError) as e:
                raise InvalidParameter(f"Invalid value for {name}: {e}", extra={"param": name, "value": value}) from e
            self.source.set(name, value)
        log.info("registry.reset", extra={"param": name, "value": value, "buffers": rebuilt})
        return rebuilt

    def series(self) -> List[Tuple[str, str, str]]:
        """(type, algorithm, current value) for every buffer, ordered by type then algorithm."""
        out: List[Tuple[str, str, str]] = []
        for mt in self._types.values():
            for algo, buff in mt.registers.items():
                out.append((mt.name, algo, buff.current()))
        return out

    def describe(self) -> Dict[str, Dict[str, object]]:
        return {
            mt.name: {
                "algorithms": list(mt.registers),
                "sizes": {algo: len(b) for algo, b in mt.registers.items()},
                "params": params_for_type(self.source, mt.name).as_dict(),
            }
            for mt in self._types.values()
        }
