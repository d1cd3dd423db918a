import os

import pytest

from conftest import MulEngine, encode_r1cs
from zkr1cs.circuit import config as config_mod
from zkr1cs.circuit.config import CircuitConfig
from zkr1cs.circuit.instance import instantiate
from zkr1cs.core.field import PrimeField
from zkr1cs.errors import (
    EngineInstantiationError, FilenameError, ShapeLoadError, EngineComputeError,
)
from zkr1cs.witness.calculator import WitnessCalculator
from zkr1cs.witness.inputs import CircuitInput

def test_new_with_real_calculator(mul_wasm, mul_r1cs, python_node):
    cfg = CircuitConfig.new(mul_wasm, mul_r1cs, node=python_node)
    assert cfg.sanity_check is False
    assert cfg.r1cs.num_variables == 4
    assert isinstance(cfg.wtns.engine, WitnessCalculator)
    w = cfg.wtns.compute([CircuitInput("a", [3]), CircuitInput("b", [5])])
    assert w == [1, 15, 3, 5]

def test_scenario_one_public_input(tmp_path, mul_wasm, python_node):
    shape = tmp_path / "c.r1cs"
    shape.write_bytes(encode_r1cs(0, 1, 0, 4, [({1: 1}, {2: 1}, {0: 1})]))
    cfg = CircuitConfig.new(str(mul_wasm), str(shape), node=python_node)
    assert cfg.r1cs.num_variables == 4
    assert cfg.r1cs.num_pub_in == 1

def test_missing_engine_path_skips_shape_loading(tmp_path, mul_r1cs, monkeypatch):
    calls = []
    monkeypatch.setattr(config_mod, "load_r1cs", lambda *a: calls.append(a))
    missing = str(tmp_path / "nope" / "circuit.wasm")
    with pytest.raises(EngineInstantiationError) as ei:
        CircuitConfig.new(missing, mul_r1cs)
    assert ei.value.path == missing
    assert isinstance(ei.value.source, FileNotFoundError)
    assert ei.value.__cause__ is ei.value.source
    assert missing in str(ei.value)
    assert calls == []

def test_not_a_wasm_module(tmp_path, mul_r1cs):
    bogus = tmp_path / "x.wasm"
    bogus.write_text("hello")
    with pytest.raises(EngineInstantiationError) as ei:
        CircuitConfig.new(bogus, mul_r1cs)
    assert isinstance(ei.value.source, ValueError)

def test_missing_node_binary(mul_wasm, mul_r1cs):
    with pytest.raises(EngineInstantiationError, match="node executable"):
        CircuitConfig.new(mul_wasm, mul_r1cs, node="definitely-not-a-node-binary")

def test_shape_load_error(tmp_path):
    bad = tmp_path / "broken.r1cs"
    bad.write_bytes(b"r1cs" + b"\x07\x00\x00\x00" + b"\x00" * 4)
    with pytest.raises(ShapeLoadError) as ei:
        CircuitConfig.new("any.wasm", bad, engine_factory=lambda p: MulEngine())
    assert ei.value.path == str(bad)
    assert "version" in str(ei.value.source)

def test_shape_missing_file(tmp_path):
    missing = str(tmp_path / "missing.r1cs")
    with pytest.raises(ShapeLoadError) as ei:
        CircuitConfig.new("any.wasm", missing, engine_factory=lambda p: MulEngine())
    assert ei.value.path == missing
    assert isinstance(ei.value.source, OSError)

@pytest.mark.parametrize("which", ["wtns", "r1cs"])
def test_non_text_path(which, mul_r1cs):
    bad = b"\xff\xfecircuit"
    args = {"wtns": "a.wasm", "r1cs": str(mul_r1cs)}
    args[which] = bad
    with pytest.raises(FilenameError) as ei:
        CircuitConfig.new(args["wtns"], args["r1cs"], engine_factory=lambda p: MulEngine())
    assert ei.value.argument == which

def test_surrogate_path_is_rejected(mul_r1cs):
    bad = os.fsdecode(b"\xffcircuit.wasm") if os.name == "posix" else "\udcffcircuit.wasm"
    with pytest.raises(FilenameError):
        CircuitConfig.new(bad, mul_r1cs, engine_factory=lambda p: MulEngine())

def test_sanity_check_flag_is_mutable(mul_r1cs):
    cfg = CircuitConfig.new("a.wasm", mul_r1cs, engine_factory=lambda p: MulEngine())
    cfg.sanity_check = True
    assert cfg.sanity_check

def test_calculator_failure_is_compute_error(mul_wasm, mul_r1cs, python_node):
    cfg = CircuitConfig.new(mul_wasm, mul_r1cs, node=python_node)
    with pytest.raises(EngineComputeError) as ei:
        cfg.wtns.compute([CircuitInput("fail", [1])])
    assert ei.value.returncode == 1
    assert "Assert Failed" in ei.value.stderr

def test_field_reaches_the_calculator(mul97_files, python_node):
    wasm, shape = mul97_files
    cfg = CircuitConfig.new(wasm, shape, field=PrimeField(97), node=python_node)
    assert cfg.wtns.engine.field.p == 97
    cfg.sanity_check = True
    inst = instantiate(cfg, [CircuitInput("a", [10]), CircuitInput("b", [20])])
    assert inst.witness == [1, 200 % 97, 10, 20]
    inst.check()

def test_calculator_and_shape_prime_disagree(mul97_files, python_node):
    wasm, shape = mul97_files
    with pytest.raises(ShapeLoadError) as ei:
        CircuitConfig.new(wasm, shape, node=python_node)
    assert ei.value.path == str(shape)
    assert "does not match" in str(ei.value.source)
