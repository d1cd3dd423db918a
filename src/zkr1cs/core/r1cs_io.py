from __future__ import annotations
import json
import logging
import struct
from pathlib import Path
from typing import List, Tuple, Optional, Dict

from zkr1cs.core.field import PrimeField, BN254
from zkr1cs.core.r1cs import R1CS, Term

logger = logging.getLogger(__name__)

R1CS_MAGIC = b"r1cs"
HEADER_SECTION = 1
CONSTRAINT_SECTION = 2


# ---- snarkjs JSON export ----
def _var(v) -> int:
    var = int(v)
    if var < 0:
        raise ValueError(f"negative variable index {var}")
    return var


def _normalize_constraint_entry(entry, field: PrimeField) -> List[Term]:
    if entry is None:
        return []
    if isinstance(entry, dict):
        return [(_var(k), field.from_str(v)) for k, v in entry.items()]
    if isinstance(entry, list):
        out = []
        for t in entry:
            if isinstance(t, dict) and "coeff" in t and "var" in t:
                out.append((_var(t["var"]), field.from_str(t["coeff"])))
            elif isinstance(t, (list, tuple)) and len(t) == 2:
                c, v = t
                out.append((_var(v), field.from_str(c)))
            else:
                raise ValueError(f"Unrecognized term format element: {t!r}")
        return out
    raise ValueError(f"Unrecognized term container: {type(entry)}")


def _constraints_from_json(obj, field: PrimeField):
    cons = obj.get("constraints")
    if cons is None:
        raise ValueError("R1CS JSON missing 'constraints'")
    out = []
    for i, c in enumerate(cons):
        if isinstance(c, list) and len(c) == 3:
            A_raw, B_raw, C_raw = c
        elif isinstance(c, dict) and all(k in c for k in ("A", "B", "C")):
            A_raw, B_raw, C_raw = c["A"], c["B"], c["C"]
        else:
            raise ValueError(f"Constraint {i} unexpected format: {type(c)}")
        out.append((
            _normalize_constraint_entry(A_raw, field),
            _normalize_constraint_entry(B_raw, field),
            _normalize_constraint_entry(C_raw, field),
        ))
    return out


def _check_prime(prime: int, field: Optional[PrimeField]) -> PrimeField:
    if field is None:
        return BN254 if prime == BN254.p else PrimeField(prime)
    if field.p != prime:
        raise ValueError(f"R1CS prime {prime} does not match field modulus {field.p}")
    return field


def load_r1cs_json(path: str | Path, field: Optional[PrimeField] = None) -> R1CS:
    obj = json.loads(Path(path).read_text())
    if not isinstance(obj, dict):
        raise ValueError("R1CS JSON must be an object")
    field = _check_prime(int(obj.get("prime") or BN254.p), field)
    constraints = _constraints_from_json(obj, field)

    n_vars = int(obj.get("nVars") or obj.get("nWitness") or 0)
    n_pub_in = int(obj.get("nPubInputs") or 0)
    n_pub_out = int(obj.get("nOutputs") or 0)
    if n_vars == 0:
        maxv = 0
        for A, B, C in constraints:
            for var, _ in (A + B + C):
                maxv = max(maxv, var)
        n_vars = maxv + 1
    n_declared = obj.get("nConstraints")
    if n_declared is not None and int(n_declared) != len(constraints):
        raise ValueError(f"nConstraints is {n_declared} but {len(constraints)} constraints present")
    if n_vars < 1 + n_pub_in + n_pub_out:
        raise ValueError(f"nVars ({n_vars}) smaller than 1 + public inputs + outputs")
    return R1CS.from_counts(n_pub_in, n_pub_out, n_vars, constraints, field=field)


# ---- circom binary format ----
def _index_sections(raw: bytes) -> Dict[int, List[Tuple[int, int]]]:
    if len(raw) < 12 or raw[:4] != R1CS_MAGIC:
        raise ValueError("not an R1CS file (bad magic)")
    version, n_sections = struct.unpack_from("<II", raw, 4)
    if version != 1:
        raise ValueError(f"unsupported R1CS version {version}")
    sections: Dict[int, List[Tuple[int, int]]] = {}
    pos = 12
    for _ in range(n_sections):
        if pos + 12 > len(raw):
            raise ValueError("truncated R1CS section table")
        s_type, s_size = struct.unpack_from("<IQ", raw, pos)
        pos += 12
        if pos + s_size > len(raw):
            raise ValueError(f"section {s_type} overruns end of file")
        sections.setdefault(s_type, []).append((pos, s_size))
        pos += s_size
    return sections


def _single(sections, s_type: int) -> Tuple[int, int]:
    found = sections.get(s_type)
    if not found:
        raise ValueError(f"R1CS file missing section {s_type}")
    if len(found) > 1:
        raise ValueError(f"R1CS file has duplicate section {s_type}")
    return found[0]


def read_r1cs_bin(path: str | Path, field: Optional[PrimeField] = None) -> R1CS:
    raw = Path(path).read_bytes()
    sections = _index_sections(raw)

    pos, size = _single(sections, HEADER_SECTION)
    if size < 4:
        raise ValueError("truncated header section")
    (n8,) = struct.unpack_from("<I", raw, pos)
    if n8 == 0 or n8 % 8 != 0:
        raise ValueError(f"field size {n8} is not a multiple of 8")
    if size < 4 + n8 + 28:
        raise ValueError("truncated header section")
    pos += 4
    prime = int.from_bytes(raw[pos:pos + n8], "little")
    pos += n8
    n_wires, n_pub_out, n_pub_in, n_prv_in = struct.unpack_from("<IIII", raw, pos)
    (n_labels,) = struct.unpack_from("<Q", raw, pos + 16)
    (m_constraints,) = struct.unpack_from("<I", raw, pos + 24)
    field = _check_prime(prime, field)
    if n_wires < 1 + n_pub_in + n_pub_out:
        raise ValueError(f"nWires ({n_wires}) smaller than 1 + public inputs + outputs")

    pos, size = _single(sections, CONSTRAINT_SECTION)
    end = pos + size
    term = struct.Struct("<I")

    def read_lc():
        nonlocal pos
        if pos + 4 > end:
            raise ValueError("truncated constraint section")
        (n_terms,) = term.unpack_from(raw, pos)
        pos += 4
        lc = []
        for _ in range(n_terms):
            if pos + 4 + n8 > end:
                raise ValueError("truncated constraint section")
            (wire,) = term.unpack_from(raw, pos)
            coeff = int.from_bytes(raw[pos + 4:pos + 4 + n8], "little")
            lc.append((wire, coeff % field.p))
            pos += 4 + n8
        return lc

    constraints = []
    for _ in range(m_constraints):
        constraints.append((read_lc(), read_lc(), read_lc()))

    logger.debug("read %s: %d wires, %d constraints, %d private inputs, %d labels",
                 path, n_wires, m_constraints, n_prv_in, n_labels)
    return R1CS.from_counts(n_pub_in, n_pub_out, n_wires, constraints, field=field)


def load_r1cs(path: str | Path, field: Optional[PrimeField] = None) -> R1CS:
    """
    Load an R1CS shape from a circom binary file or a snarkjs JSON export.
    Raises OSError / ValueError; callers attach path context.
    """
    path = Path(path)
    with path.open("rb") as fh:
        head = fh.read(4)
    if head == R1CS_MAGIC:
        r = read_r1cs_bin(path, field)
    elif path.suffix == ".json":
        r = load_r1cs_json(path, field)
    else:
        raise ValueError(f"unrecognized R1CS file format: {path.name}")
    logger.info("loaded R1CS %s (%d variables, %d constraints)",
                path, r.num_variables, r.num_constraints)
    return r
