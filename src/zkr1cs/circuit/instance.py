from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from zkr1cs.circuit.config import CircuitConfig
from zkr1cs.core.r1cs import R1CS
from zkr1cs.errors import WitnessLengthError, UnsatisfiedConstraintError
from zkr1cs.witness.inputs import CircuitInput

logger = logging.getLogger(__name__)


@dataclass
class CircuitInstance:
    """
    An R1CS shape bound to an optional full assignment. Without a witness
    the instance only describes the circuit (key generation); with one, its
    length is expected to equal r1cs.num_variables.
    """
    r1cs: R1CS
    witness: Optional[List[int]] = None

    @property
    def is_shape_only(self) -> bool:
        return self.witness is None

    def _require_witness(self) -> List[int]:
        if self.witness is None:
            raise ValueError("circuit instance has no witness")
        return self.witness

    def public_outputs(self) -> List[int]:
        w = self._require_witness()
        return w[1:1 + self.r1cs.num_pub_out]

    def public_inputs(self) -> List[int]:
        w = self._require_witness()
        start = 1 + self.r1cs.num_pub_out
        return w[start:start + self.r1cs.num_pub_in]

    def check(self) -> None:
        """Raise unless the witness has the right length and satisfies every constraint."""
        w = self._require_witness()
        self.r1cs.validate()
        if len(w) != self.r1cs.num_variables:
            raise WitnessLengthError(self.r1cs.num_variables, len(w))
        bad = self.r1cs.unsatisfied(w)
        if bad:
            raise UnsatisfiedConstraintError(bad)


def _check_length(r1cs: R1CS, witness: Sequence[int]) -> None:
    if len(witness) != r1cs.num_variables:
        logger.warning("witness length %d, circuit expects %d", len(witness), r1cs.num_variables)
        raise WitnessLengthError(r1cs.num_variables, len(witness))


def instantiate(config: CircuitConfig,
                inputs: Optional[Sequence[CircuitInput]] = None) -> CircuitInstance:
    """
    Build a circuit instance from a configuration. With no inputs the
    engine is not called and the instance is shape-only. With sanity
    checking off a wrong-length witness is passed through to the caller.
    """
    if inputs is None:
        return CircuitInstance(r1cs=config.r1cs, witness=None)
    witness = config.wtns.compute(inputs)
    if config.sanity_check:
        config.r1cs.validate()
        _check_length(config.r1cs, witness)
    return CircuitInstance(r1cs=config.r1cs, witness=witness)


def calculate_witness(config: CircuitConfig, inputs: Sequence[CircuitInput],
                      sanity_check: Optional[bool] = None) -> List[int]:
    """
    Compute a full assignment for `inputs`. When sanity checking (the
    config's flag unless overridden) the witness must also satisfy every
    constraint.
    """
    check = config.sanity_check if sanity_check is None else sanity_check
    witness = config.wtns.compute(inputs)
    if check:
        config.r1cs.validate()
        _check_length(config.r1cs, witness)
        bad = config.r1cs.unsatisfied(witness)
        if bad:
            logger.warning("witness violates %d constraints", len(bad))
            raise UnsatisfiedConstraintError(bad)
    return witness
