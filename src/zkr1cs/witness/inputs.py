from __future__ import annotations
import json
from dataclasses import dataclass, field as dc_field
from pathlib import Path
from typing import List, Dict, Any, Iterable

from zkr1cs.core.field import PrimeField, BN254


@dataclass
class CircuitInput:
    """
    One named input signal and its values, the unit fed to a witness
    calculator. Array signals carry their elements flattened row-major.
    """
    name: str
    value: List[int] = dc_field(default_factory=list)

    def to_dict(self, field: PrimeField = BN254) -> Dict[str, Any]:
        for v in self.value:
            if not 0 <= v < field.p:
                raise ValueError(f"Circuit input {self.name!r} value {v} is not a canonical field element")
        return {"name": self.name, "value": [field.to_str(v) for v in self.value]}

    @classmethod
    def from_dict(cls, obj: Dict[str, Any], field: PrimeField = BN254) -> "CircuitInput":
        if not isinstance(obj, dict) or "name" not in obj or "value" not in obj:
            raise ValueError(f"Circuit input needs 'name' and 'value': {obj!r}")
        vals = obj["value"]
        if not isinstance(vals, list):
            raise ValueError(f"Circuit input {obj['name']!r} value must be a list")
        return cls(str(obj["name"]), [field.from_str(v) for v in vals])

    def to_json(self, field: PrimeField = BN254) -> str:
        return json.dumps(self.to_dict(field))

    @classmethod
    def from_json(cls, s: str, field: PrimeField = BN254) -> "CircuitInput":
        return cls.from_dict(json.loads(s), field)


def _flatten(v) -> List:
    if isinstance(v, list):
        out = []
        for x in v:
            out.extend(_flatten(x))
        return out
    return [v]


def inputs_from_json_object(obj: Dict[str, Any], field: PrimeField = BN254) -> List[CircuitInput]:
    """circom input.json style {"a": "3", "b": ["1", "2"]} -> [CircuitInput, ...]"""
    if not isinstance(obj, dict):
        raise ValueError("Input JSON must be an object of signal name -> value(s)")
    return [CircuitInput(name, [field.from_str(x) for x in _flatten(v)]) for name, v in obj.items()]


def inputs_to_json_object(inputs: Iterable[CircuitInput], field: PrimeField = BN254) -> Dict[str, Any]:
    # later duplicates win, same as a JSON object would
    return {inp.name: [field.to_str(v) for v in inp.value] for inp in inputs}


def load_inputs_json(path, field: PrimeField = BN254) -> List[CircuitInput]:
    return inputs_from_json_object(json.loads(Path(path).read_text()), field)
