from __future__ import annotations
import json
import logging
import shutil
import subprocess
import tempfile
import weakref
from pathlib import Path
from typing import List, Sequence

from zkr1cs.core.field import PrimeField, BN254
from zkr1cs.core.witness_io import read_wtns
from zkr1cs.errors import EngineComputeError
from zkr1cs.witness.inputs import CircuitInput, inputs_to_json_object

logger = logging.getLogger(__name__)

WASM_MAGIC = b"\x00asm"


class WitnessCalculator:
    """
    Drives a circom-compiled wasm module through the generate_witness.js
    script circom writes next to it (`<circuit>_js/`).

    Inputs and the resulting witness go through a scratch directory owned by
    the instance, so two compute() calls on one instance must not overlap;
    share it through EngineHandle.
    """

    def __init__(self, wasm_path, *, node: str = "node", script=None,
                 field: PrimeField = BN254):
        self.wasm_path = Path(wasm_path)
        if not self.wasm_path.is_file():
            raise FileNotFoundError(f"wasm module not found: {self.wasm_path}")
        with self.wasm_path.open("rb") as fh:
            if fh.read(4) != WASM_MAGIC:
                raise ValueError(f"not a wasm module: {self.wasm_path}")
        self.script = Path(script) if script else self.wasm_path.parent / "generate_witness.js"
        if not self.script.is_file():
            raise FileNotFoundError(f"witness generator script not found: {self.script}")
        resolved = shutil.which(node)
        if resolved is None:
            raise FileNotFoundError(f"node executable not found: {node}")
        self.node = resolved
        self.field = field
        self._workdir = Path(tempfile.mkdtemp(prefix="zkr1cs-wtns-"))
        self._finalizer = weakref.finalize(self, shutil.rmtree, str(self._workdir), True)

    def __repr__(self):
        return f"WitnessCalculator({str(self.wasm_path)!r})"

    def close(self) -> None:
        self._finalizer()

    def compute(self, inputs: Sequence[CircuitInput]) -> List[int]:
        input_file = self._workdir / "input.json"
        wtns_file = self._workdir / "witness.wtns"
        input_file.write_text(json.dumps(inputs_to_json_object(inputs, self.field)))
        wtns_file.unlink(missing_ok=True)

        cmd = [self.node, str(self.script), str(self.wasm_path), str(input_file), str(wtns_file)]
        logger.debug("running %s", " ".join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise EngineComputeError(
                f"Witness generation failed ({result.returncode}): {result.stderr.strip()}",
                returncode=result.returncode, stderr=result.stderr)
        if not wtns_file.is_file():
            raise EngineComputeError("Witness generator produced no witness file",
                                     returncode=result.returncode, stderr=result.stderr)
        try:
            witness = read_wtns(wtns_file, self.field)
        except ValueError as err:
            raise EngineComputeError(f"Unreadable witness output: {err}") from err
        logger.debug("computed witness of length %d from %s", len(witness), self.wasm_path.name)
        return witness
