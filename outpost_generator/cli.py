#!/usr/bin/env python3
"""
Outpost generator CLI - Command-line interface for the oil outpost generator.

This module provides the entry point for the 'outpost-gen' command installed via pip.

Usage:
    outpost-gen pumpjacks.txt                       # Generate from a file holding a blueprint string
    outpost-gen --input "0eNq..."                   # Generate from a string
    outpost-gen pumpjacks.txt -o outpost.blueprint  # Save blueprint to file
    outpost-gen pumpjacks.txt --no-beacons          # Pipes and poles only
    outpost-gen pumpjacks.txt --beacon-module none  # Same, by removing the beacon modules
"""

import json as jsonlib
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click

from outpost_generator.src.common.constants import DEFAULT_CONFIG, GeneratorConfig
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.exceptions import ConfigurationError, GenerationError
from outpost_generator.src.emission.blueprint_reader import read_pumpjacks
from outpost_generator.src.emission.emitter import BlueprintEmitter
from outpost_generator.src.layout.planner import OutpostPlanner


def validate_module(ctx, param, value):
    """Validate a module name; ``none`` disables modules."""
    if value is None:
        return None

    value = value.strip().lower()
    if value == "none":
        return None
    if not value.endswith(("-module", "-module-2", "-module-3")):
        raise click.BadParameter("must be a module name such as 'speed-module-3', or 'none'")
    return value


def generate_outpost_source(
    blueprint_string: str,
    log_level: str = "error",
    use_json: bool = False,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> tuple[bool, str, list]:
    """
    Generate an oil outpost from a blueprint containing only pumpjacks.

    Args:
        blueprint_string: The encoded blueprint with the pumpjacks
        log_level: Logging verbosity level
        use_json: If True, return JSON instead of the compressed blueprint string
        config: Generator configuration settings

    Returns:
        (success: bool, result: str, diagnostics: list)
    """
    diagnostics = ProgramDiagnostics(log_level=log_level, raise_errors=True)

    try:
        pumpjacks = read_pumpjacks(blueprint_string)
    except ConfigurationError as e:
        return False, str(e), diagnostics.get_messages()

    if not pumpjacks:
        return False, "Blueprint contains no pumpjacks", diagnostics.get_messages()

    try:
        plan = OutpostPlanner(config, diagnostics).plan(pumpjacks)
        blueprint = BlueprintEmitter(config, diagnostics).emit(pumpjacks, plan)
    except GenerationError as e:
        return False, str(e), diagnostics.get_messages()

    info = plan.pipes.info
    diagnostics.info(
        f"{len(pumpjacks)} pumpjacks, {info.pipe_count} pipes, "
        f"{info.underground_count} underground pipes, "
        f"{plan.beacons.total_beacons if plan.beacons else 0} beacons, "
        f"{plan.poles.total_poles if plan.poles else 0} poles",
        stage="planning",
    )

    # Return JSON or compressed blueprint string
    if use_json:
        blueprint_result = jsonlib.dumps(blueprint.to_dict())
    else:
        blueprint_result = blueprint.to_string()

    return True, blueprint_result, diagnostics.get_messages()


def setup_logging(level: str) -> None:
    """Setup logging configuration."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")
    logging.basicConfig(level=numeric_level, format="%(levelname)s: %(message)s")


@click.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path), required=False)
@click.option(
    "-i",
    "--input",
    "input_string",
    type=str,
    help="Read the blueprint string from the command line instead of a file",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output file for the blueprint (default: stdout)",
)
@click.option(
    "--min-gap",
    type=click.IntRange(min=0),
    default=DEFAULT_CONFIG.min_gap_between_undergrounds,
    show_default=True,
    help="Minimum number of tiles between two underground pipes",
)
@click.option(
    "--min-affected",
    type=click.IntRange(min=0),
    default=DEFAULT_CONFIG.min_affected_entities,
    show_default=True,
    help="Minimum number of pumpjacks a beacon has to affect",
)
@click.option("--no-beacons", is_flag=True, help="Do not place beacons")
@click.option("--no-poles", is_flag=True, help="Do not place power poles")
@click.option(
    "--pumpjack-module",
    default=DEFAULT_CONFIG.pumpjack_module,
    callback=validate_module,
    help=f"Module for pumpjacks, or 'none' (default: {DEFAULT_CONFIG.pumpjack_module})",
)
@click.option(
    "--beacon-module",
    default=DEFAULT_CONFIG.beacon_module,
    callback=validate_module,
    help=f"Module for beacons, 'none' disables beacons (default: {DEFAULT_CONFIG.beacon_module})",
)
@click.option(
    "--json",
    is_flag=True,
    help="Output blueprint in JSON format instead of compressed string format",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    help="Set the logging level",
)
def main(
    input_file,
    input_string,
    output,
    min_gap,
    min_affected,
    no_beacons,
    no_poles,
    pumpjack_module,
    beacon_module,
    json,
    log_level,
):
    """Generate pipes, beacons and power poles for the pumpjacks of a blueprint."""
    setup_logging(log_level)

    # Validate input source
    if input_file and input_string:
        click.echo("Error: Cannot specify both input file and --input string", err=True)
        sys.exit(1)

    if not input_file and not input_string:
        click.echo("Error: Must specify either an input file or --input string", err=True)
        sys.exit(1)

    if input_string:
        blueprint_string = input_string
    else:
        try:
            blueprint_string = input_file.read_text(encoding="utf-8")
        except Exception as e:
            click.echo(f"Failed to read input file: {e}", err=True)
            sys.exit(1)

    config = replace(
        DEFAULT_CONFIG,
        min_gap_between_undergrounds=min_gap,
        min_affected_entities=min_affected,
        beacons=not no_beacons,
        poles=not no_poles,
        pumpjack_module=pumpjack_module,
        beacon_module=beacon_module,
        show_progress=log_level.lower() in ["debug", "info"],
    )

    success, result, diagnostic_messages = generate_outpost_source(
        blueprint_string,
        log_level=log_level,
        use_json=json,
        config=config,
    )
    verbose = log_level.lower() in ["debug", "info"]

    if not success:
        click.echo(f"Generation failed: {result}", err=True)
        sys.exit(1)

    # Output blueprint
    if output:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Blueprint saved to {output}")
        except Exception as e:
            click.echo(f"Failed to write output file: {e}", err=True)
            sys.exit(1)
    else:
        click.echo(result)

    if verbose:
        msg_count = len(diagnostic_messages) if diagnostic_messages else 0
        msg = (
            f"Generation completed with {msg_count} diagnostic(s)."
            if msg_count
            else "Generation completed successfully."
        )
        click.echo(msg, err=True)


if __name__ == "__main__":
    main()
