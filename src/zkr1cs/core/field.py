from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple, Sequence

BN254_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617


@dataclass(frozen=True)
class PrimeField:
    """
    Integers mod p. Elements are plain Python ints in [0, p); every
    structure in the package takes one of these instead of hard-coding p.
    """
    p: int

    @property
    def n8(self) -> int:
        # byte width used by circom's binary formats (multiple of 8 bytes)
        return ((self.p.bit_length() - 1) // 64 + 1) * 8

    def reduce(self, x: int) -> int:
        return x % self.p

    def add(self, a: int, b: int) -> int:
        return (a + b) % self.p

    def sub(self, a: int, b: int) -> int:
        return (a - b) % self.p

    def neg(self, a: int) -> int:
        return (-a) % self.p

    def mul(self, a: int, b: int) -> int:
        return (a * b) % self.p

    def inv(self, a: int) -> int:
        a = a % self.p
        if a == 0:
            raise ZeroDivisionError("No inverse for 0 mod p")
        return pow(a, self.p - 2, self.p)

    def eq(self, a: int, b: int) -> bool:
        return (a - b) % self.p == 0

    def from_str(self, s) -> int:
        if isinstance(s, int):
            return s % self.p
        if not isinstance(s, str):
            raise ValueError(f"Unsupported field element encoding: {type(s)}")
        s = s.strip()
        neg = s.startswith("-")
        body = s[1:] if neg else s
        v = int(body, 16) if body.startswith(("0x", "0X")) else int(body)
        return (-v if neg else v) % self.p

    def to_str(self, a: int) -> str:
        return str(a % self.p)

    def from_bytes_le(self, b: bytes) -> int:
        return int.from_bytes(b, "little") % self.p

    def to_bytes_le(self, a: int, n8: int = 0) -> bytes:
        return (a % self.p).to_bytes(n8 or self.n8, "little")

    def dot(self, lc: Iterable[Tuple[int, int]], z: Sequence[int]) -> int:
        """Evaluate a sparse linear combination [(var, coeff), ...] at z."""
        acc = 0
        for j, c in lc:
            acc += c * z[j]
        return acc % self.p


BN254 = PrimeField(BN254_PRIME)
