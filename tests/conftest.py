import json
import struct
import sys
import threading

import pytest

from zkr1cs.core.field import BN254_PRIME

FIELD_SIZE = 32


def encode_r1cs(n_pub_out, n_pub_in, n_prv_in, n_wires, constraints, prime=BN254_PRIME):
    """Serialize constraints [(A, B, C)] with sides {var: coeff} into circom's binary layout."""
    header = struct.pack("<I", FIELD_SIZE) + prime.to_bytes(FIELD_SIZE, "little")
    header += struct.pack("<IIIIQI", n_wires, n_pub_out, n_pub_in, n_prv_in, n_wires, len(constraints))

    body = b""
    for cons in constraints:
        for lc in cons:
            body += struct.pack("<I", len(lc))
            for var, coeff in lc.items():
                body += struct.pack("<I", var) + (coeff % prime).to_bytes(FIELD_SIZE, "little")

    labels = b"".join(struct.pack("<Q", i) for i in range(n_wires))
    out = b"r1cs" + struct.pack("<II", 1, 3)
    # constraints section first: readers must not rely on section order
    out += struct.pack("<IQ", 2, len(body)) + body
    out += struct.pack("<IQ", 1, len(header)) + header
    out += struct.pack("<IQ", 3, len(labels)) + labels
    return out


# circuit: c <== a * b with c public output, a and b private
# wires: 0 -> one, 1 -> c, 2 -> a, 3 -> b
MUL_CONSTRAINTS = [({2: 1}, {3: 1}, {1: 1})]


@pytest.fixture
def mul_r1cs(tmp_path):
    p = tmp_path / "mul.r1cs"
    p.write_bytes(encode_r1cs(1, 0, 2, 4, MUL_CONSTRAINTS))
    return p


# Stand-in for circom's generate_witness.js: run by the Python interpreter
# instead of node, with the same argv (wasm, input.json, output .wtns).
FAKE_GENERATOR = r'''
import json, os, struct, sys
wasm, inp, out = sys.argv[1:4]
prime_file = os.path.join(os.path.dirname(wasm), "prime.txt")
P = int(open(prime_file).read()) if os.path.exists(prime_file) else %d
obj = json.load(open(inp))
if "fail" in obj:
    sys.stderr.write("Error: Assert Failed\n")
    sys.exit(1)
a = int(obj["a"][0]); b = int(obj["b"][0])
w = [1, a * b %% P, a, b]
if "truncate" in obj:
    w = w[:-1]
header = struct.pack("<I", 32) + P.to_bytes(32, "little") + struct.pack("<I", len(w))
data = b"".join(v.to_bytes(32, "little") for v in w)
with open(out, "wb") as fh:
    fh.write(b"wtns" + struct.pack("<II", 2, 2))
    fh.write(struct.pack("<IQ", 1, len(header)) + header)
    fh.write(struct.pack("<IQ", 2, len(data)) + data)
''' % BN254_PRIME


@pytest.fixture
def mul_wasm(tmp_path):
    d = tmp_path / "mul_js"
    d.mkdir()
    wasm = d / "mul.wasm"
    wasm.write_bytes(b"\x00asm\x01\x00\x00\x00")
    (d / "generate_witness.js").write_text(FAKE_GENERATOR)
    return wasm


@pytest.fixture
def mul97_files(tmp_path, mul_wasm):
    """The mul circuit over F_97, with the witness generator switched to that prime."""
    (mul_wasm.parent / "prime.txt").write_text("97")
    shape = tmp_path / "mul97.r1cs"
    shape.write_bytes(encode_r1cs(1, 0, 2, 4, MUL_CONSTRAINTS, prime=97))
    return mul_wasm, shape


@pytest.fixture
def python_node():
    return sys.executable


class MulEngine:
    """In-process engine for the mul circuit; detects overlapping calls."""

    def __init__(self, truncate=False, delay=0.0):
        self.truncate = truncate
        self.delay = delay
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._state = None
        self._guard = threading.Lock()

    def compute(self, inputs):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            self.calls += 1
            vals = {i.name: i.value for i in inputs}
            # shared scratch state, corrupted if two calls interleave
            self._state = (vals["a"][0], vals["b"][0])
            if self.delay:
                threading.Event().wait(self.delay)
            a, b = self._state
            w = [1, a * b % BN254_PRIME, a, b]
            return w[:-1] if self.truncate else w
        finally:
            with self._guard:
                self.active -= 1


@pytest.fixture
def write_json(tmp_path):
    def _write(name, obj):
        p = tmp_path / name
        p.write_text(json.dumps(obj))
        return p
    return _write
