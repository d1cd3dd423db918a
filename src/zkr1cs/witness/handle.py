from __future__ import annotations
import logging
import threading
from typing import List, Sequence, Protocol

from zkr1cs.witness.calculator import WitnessCalculator
from zkr1cs.witness.inputs import CircuitInput

logger = logging.getLogger(__name__)


class WitnessEngine(Protocol):
    def compute(self, inputs: Sequence[CircuitInput]) -> List[int]: ...


class EngineHandle:
    """
    Exclusive-access wrapper around a stateful witness engine: at most one
    compute() runs at a time however many threads share the handle.
    Callers block on the lock; there is no timeout and no re-entrance.
    """

    def __init__(self, engine: WitnessEngine):
        self._engine = engine
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path, factory=WitnessCalculator, **kwargs) -> "EngineHandle":
        return cls(factory(path, **kwargs))

    @property
    def engine(self) -> WitnessEngine:
        return self._engine

    def compute(self, inputs: Sequence[CircuitInput]) -> List[int]:
        inputs = list(inputs)
        with self._lock:
            # engine errors propagate as raised
            witness = self._engine.compute(inputs)
        logger.debug("engine returned %d values for %d inputs", len(witness), len(inputs))
        return list(witness)

    def __repr__(self):
        return f"EngineHandle({self._engine!r})"
