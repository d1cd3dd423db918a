import json
import logging
import click
from pathlib import Path

from zkr1cs.circuit.config import CircuitConfig
from zkr1cs.circuit.instance import calculate_witness
from zkr1cs.core.r1cs import summarize_r1cs
from zkr1cs.core.r1cs_io import load_r1cs
from zkr1cs.core.witness_io import dump_witness_json
from zkr1cs.errors import CircuitError
from zkr1cs.witness.inputs import load_inputs_json

@click.group()
@click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logging")
def cli(verbose):
    """zkr1cs command line interface"""
    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

@cli.command(name="inspect")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True,
              help="Path to a circom .r1cs file or snarkjs R1CS JSON export")
@click.option("--validate/--no-validate", default=True, show_default=True)
def inspect_cmd(r1cs, validate):
    """Load and summarize an R1CS."""
    try:
        r = load_r1cs(r1cs)
        if validate:
            r.validate()
    except (OSError, ValueError, CircuitError) as err:
        raise click.ClickException(str(err))
    click.echo(json.dumps(summarize_r1cs(r), indent=2))

@cli.command(name="witness")
@click.option("--wasm", type=click.Path(exists=True, dir_okay=False), required=True,
              help="circom-compiled witness module")
@click.option("--r1cs", type=click.Path(exists=True, dir_okay=False), required=True)
@click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False), required=True,
              help="circom input.json")
@click.option("--node", default="node", show_default=True, help="node executable")
@click.option("--sanity-check/--no-sanity-check", default=False, show_default=True)
@click.option("--out", "out_path", type=click.Path(dir_okay=False), required=False,
              help="Write the witness as a JSON array here instead of stdout")
def witness_cmd(wasm, r1cs, input_path, node, sanity_check, out_path):
    """Compute a witness for a circuit and input file."""
    try:
        # the calculator must read witnesses over the circuit's own prime
        field = load_r1cs(r1cs).field
        cfg = CircuitConfig.new(wasm, r1cs, field=field, node=node)
        inputs = load_inputs_json(input_path, cfg.r1cs.field)
        witness = calculate_witness(cfg, inputs, sanity_check=sanity_check)
    except (OSError, ValueError, CircuitError) as err:
        raise click.ClickException(str(err))
    if out_path:
        Path(out_path).parent.mkdir(parents=True, exist_ok=True)
        dump_witness_json(out_path, witness, cfg.r1cs.field)
        click.echo(f"wrote {len(witness)} values to {out_path}")
    else:
        click.echo(json.dumps([cfg.r1cs.field.to_str(v) for v in witness]))


def main():
    cli()

if __name__ == "__main__":
    main()
