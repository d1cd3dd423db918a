from __future__ import annotations
from dataclasses import dataclass, field as dc_field
from typing import List, Tuple, Sequence, Dict, Any
import numpy as np
from scipy.sparse import csr_matrix

from zkr1cs.core.field import PrimeField, BN254
from zkr1cs.errors import ShapeValidationError

# (variable index, coefficient)
Term = Tuple[int, int]
# A, B, C sides of A(x) * B(x) = C(x); repeated indices are summed by the evaluator
Constraint = Tuple[Sequence[Term], Sequence[Term], Sequence[Term]]

SIDES = ("A", "B", "C")


@dataclass(frozen=True)
class R1CS:
    """
    Shape of a rank-1 constraint system.

    Variable 0 is the constant-one wire, followed by the public outputs and
    the public inputs; `num_inputs` counts all of those, everything after is
    auxiliary (private inputs included).
    """
    num_pub_in: int
    num_pub_out: int
    num_inputs: int
    num_aux: int
    num_variables: int
    constraints: Tuple[Constraint, ...]
    field: PrimeField = dc_field(default=BN254, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "constraints", tuple(_freeze(c) for c in self.constraints))

    @classmethod
    def from_counts(cls, num_pub_in: int, num_pub_out: int, num_variables: int,
                    constraints, field: PrimeField = BN254) -> "R1CS":
        num_inputs = 1 + num_pub_in + num_pub_out
        return cls(
            num_pub_in=num_pub_in, num_pub_out=num_pub_out,
            num_inputs=num_inputs, num_aux=num_variables - num_inputs,
            num_variables=num_variables,
            constraints=tuple(constraints),
            field=field,
        )

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def validate(self) -> None:
        if self.num_variables != self.num_inputs + self.num_aux:
            raise ShapeValidationError(
                f"num_variables ({self.num_variables}) != num_inputs ({self.num_inputs})"
                f" + num_aux ({self.num_aux})")
        if self.num_inputs < 1 + self.num_pub_in + self.num_pub_out:
            raise ShapeValidationError(
                f"num_inputs ({self.num_inputs}) < 1 + num_pub_in ({self.num_pub_in})"
                f" + num_pub_out ({self.num_pub_out})")
        if self.num_aux < 0:
            raise ShapeValidationError(f"num_aux is negative ({self.num_aux})")
        n = self.num_variables
        for i, constraint in enumerate(self.constraints):
            for side, lc in zip(SIDES, constraint):
                for var, _ in lc:
                    if not 0 <= var < n:
                        raise ShapeValidationError(
                            f"constraint {i} side {side} references variable {var},"
                            f" outside [0, {n})",
                            constraint=i, side=side, index=var, bound=n)

    def evaluate(self, z: Sequence[int]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Row-wise (A z, B z, C z) over F_p as object arrays of exact ints."""
        m = len(self.constraints)
        out = [np.zeros(m, dtype=object) for _ in SIDES]
        for i, constraint in enumerate(self.constraints):
            for k, lc in enumerate(constraint):
                out[k][i] = self.field.dot(lc, z)
        return out[0], out[1], out[2]

    def unsatisfied(self, witness: Sequence[int]) -> List[int]:
        """Indices of constraints violated by a full assignment."""
        if len(witness) != self.num_variables:
            raise ValueError(
                f"assignment has {len(witness)} values, circuit has {self.num_variables} variables")
        if not self.constraints:
            return []
        p = self.field.p
        Az, Bz, Cz = self.evaluate(witness)
        residual = (Az * Bz - Cz) % p
        return [int(i) for i in np.flatnonzero(residual != 0)]

    def is_satisfied(self, witness: Sequence[int]) -> bool:
        return not self.unsatisfied(witness)

    def pattern_matrices(self) -> Tuple[csr_matrix, csr_matrix, csr_matrix]:
        """0/1 support patterns of A, B, C (m x num_variables)."""
        m, n = len(self.constraints), self.num_variables

        def build_from(k):
            rows, cols = [], []
            for i, constraint in enumerate(self.constraints):
                for var, _ in constraint[k]:
                    if 0 <= var < n:
                        rows.append(i); cols.append(var)
            M = csr_matrix((np.ones(len(rows), dtype=np.int8),
                            (np.array(rows, dtype=int), np.array(cols, dtype=int))), shape=(m, n))
            M.data[:] = 1
            return M
        return build_from(0), build_from(1), build_from(2)


def _freeze(c) -> Constraint:
    if len(c) != 3:
        raise ValueError(f"constraint must have three sides, got {len(c)}")
    return tuple(tuple((int(var), int(coeff)) for var, coeff in lc) for lc in c)


def summarize_r1cs(r: R1CS) -> Dict[str, Any]:
    A, B, _ = r.pattern_matrices()
    mult_rows = int(((A.getnnz(axis=1) > 0) & (B.getnnz(axis=1) > 0)).sum())
    return {
        "n_constraints": int(r.num_constraints),
        "num_variables": int(r.num_variables),
        "num_inputs": int(r.num_inputs),
        "num_pub_in": int(r.num_pub_in),
        "num_pub_out": int(r.num_pub_out),
        "num_aux": int(r.num_aux),
        "prime_bits": int(r.field.p.bit_length()),
        "multiplicative_rows": mult_rows,
        "linear_rows": int(r.num_constraints - mult_rows),
    }
