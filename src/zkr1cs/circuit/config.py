from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Optional

from zkr1cs.core.field import PrimeField
from zkr1cs.core.r1cs import R1CS
from zkr1cs.core.r1cs_io import load_r1cs
from zkr1cs.errors import FilenameError, EngineInstantiationError, ShapeLoadError
from zkr1cs.witness.calculator import WitnessCalculator
from zkr1cs.witness.handle import EngineHandle

logger = logging.getLogger(__name__)


def _path_text(path, argument: str) -> str:
    try:
        p = os.fspath(path)
    except TypeError:
        raise FilenameError(argument, path) from None
    try:
        if isinstance(p, bytes):
            return p.decode("utf-8")
        # undecodable bytes from the OS come back as lone surrogates
        p.encode("utf-8")
    except UnicodeError:
        raise FilenameError(argument, path) from None
    return p


@dataclass
class CircuitConfig:
    """
    A loaded circuit: the R1CS shape plus the witness calculator that
    produces assignments for it.

    `r1cs` is never mutated after construction. `wtns` is the only shared
    mutable piece and serializes its own callers. `sanity_check` may be
    flipped at any time; it makes instantiation re-validate the shape and
    the witness length.
    """
    r1cs: R1CS
    wtns: EngineHandle
    sanity_check: bool = False

    @classmethod
    def new(cls, wtns, r1cs, *, field: Optional[PrimeField] = None,
            engine_factory=WitnessCalculator, **engine_options) -> "CircuitConfig":
        """
        `wtns`: path to the compiled witness module (circom .wasm).
        `r1cs`: path to the constraint file (.r1cs or snarkjs .json export).

        Fails fast: the shape is not read when the engine cannot be built.
        `field`, when given, is handed to the engine factory as well; the
        engine and the shape must end up over the same prime.
        """
        wtns_path = _path_text(wtns, "wtns")
        r1cs_path = _path_text(r1cs, "r1cs")

        if field is not None:
            engine_options.setdefault("field", field)
        try:
            handle = EngineHandle.open(wtns_path, factory=engine_factory, **engine_options)
        except Exception as err:
            logger.error("cannot instantiate witness calculator from %s: %s", wtns_path, err)
            raise EngineInstantiationError(wtns_path, err) from err

        try:
            shape = load_r1cs(r1cs_path, field)
        except Exception as err:
            logger.error("cannot load R1CS from %s: %s", r1cs_path, err)
            raise ShapeLoadError(r1cs_path, err) from err

        engine_field = getattr(handle.engine, "field", None)
        if engine_field is not None and engine_field.p != shape.field.p:
            err = ValueError(f"R1CS prime {shape.field.p} does not match witness calculator"
                             f" prime {engine_field.p}")
            logger.error("cannot load R1CS from %s: %s", r1cs_path, err)
            raise ShapeLoadError(r1cs_path, err)

        return cls(r1cs=shape, wtns=handle, sanity_check=False)
