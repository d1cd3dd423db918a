from __future__ import annotations
import json
import struct
from pathlib import Path
from typing import List, Optional, Sequence

from zkr1cs.core.field import PrimeField, BN254

WTNS_MAGIC = b"wtns"


def load_witness_json(path, field: PrimeField = BN254) -> List[int]:
    """
    Accept:
      • snarkjs: ["1","..."]
      • alt:     {"values":[...]} / {"witness":[...]} / {"data":[...]}
    Return list[int] reduced mod p.
    """
    obj = json.loads(Path(path).read_text())
    if isinstance(obj, list):
        vals = obj
    else:
        vals = obj.get("values") or obj.get("witness") or obj.get("data") or []
    if not isinstance(vals, list):
        raise ValueError("Witness JSON does not contain an array")
    return [field.from_str(v) for v in vals]


def dump_witness_json(path, witness: Sequence[int], field: PrimeField = BN254) -> None:
    Path(path).write_text(json.dumps([field.to_str(v) for v in witness], indent=1))


def read_wtns(path, field: Optional[PrimeField] = None) -> List[int]:
    """Read a circom/snarkjs binary .wtns file (version 2)."""
    raw = Path(path).read_bytes()
    if len(raw) < 12 or raw[:4] != WTNS_MAGIC:
        raise ValueError("not a wtns file (bad magic)")
    version, n_sections = struct.unpack_from("<II", raw, 4)
    if version != 2:
        raise ValueError(f"unsupported wtns version {version}")
    sections = {}
    pos = 12
    for _ in range(n_sections):
        if pos + 12 > len(raw):
            raise ValueError("truncated wtns section table")
        s_type, s_size = struct.unpack_from("<IQ", raw, pos)
        pos += 12
        if pos + s_size > len(raw):
            raise ValueError(f"wtns section {s_type} overruns end of file")
        sections[s_type] = (pos, s_size)
        pos += s_size
    if 1 not in sections or 2 not in sections:
        raise ValueError("wtns file missing header or data section")

    hpos, hsize = sections[1]
    if hsize < 4:
        raise ValueError("truncated wtns header section")
    (n8,) = struct.unpack_from("<I", raw, hpos)
    if n8 == 0 or hsize < 4 + n8 + 4:
        raise ValueError("truncated wtns header section")
    prime = int.from_bytes(raw[hpos + 4:hpos + 4 + n8], "little")
    (n_witness,) = struct.unpack_from("<I", raw, hpos + 4 + n8)
    if field is None:
        field = PrimeField(prime)
    elif field.p != prime:
        raise ValueError(f"wtns prime {prime} does not match field modulus {field.p}")

    dpos, dsize = sections[2]
    if dsize != n_witness * n8:
        raise ValueError(f"wtns data section is {dsize} bytes, expected {n_witness * n8}")
    return [field.from_bytes_le(raw[dpos + i * n8:dpos + (i + 1) * n8]) for i in range(n_witness)]


def write_wtns(path, witness: Sequence[int], field: PrimeField = BN254) -> None:
    n8 = field.n8
    header = struct.pack("<I", n8) + field.p.to_bytes(n8, "little") + struct.pack("<I", len(witness))
    data = b"".join(field.to_bytes_le(v, n8) for v in witness)
    out = [WTNS_MAGIC, struct.pack("<II", 2, 2),
           struct.pack("<IQ", 1, len(header)), header,
           struct.pack("<IQ", 2, len(data)), data]
    Path(path).write_bytes(b"".join(out))
