from __future__ import annotations

import json
import random

import click
from flask import current_app
from flask.cli import AppGroup

from .extensions import db
from .services.assignments import export_assignments, run_and_lock_assignments, unset_and_unlock_assignments
from .services.draw import run_draw
from .services.loaders import dump_assignment, read_forbidden, read_persons, write_assignment
from .services.registry import AssignmentError
from .services.roster import import_forbidden, import_persons


santa_cli = AppGroup("santa", help="Family gift-exchange draws.")

_input_file = click.Path(exists=True, dir_okay=False)


@santa_cli.command("draw")
@click.option("--persons", "-p", "persons_files", multiple=True, required=True, type=_input_file,
              help="Persons file(s); one family per entry.")
@click.option("--forbidden", "-f", "forbidden_files", multiple=True, type=_input_file,
              help="Forbidden assignment file(s).")
@click.option("--output", "-o", "output_file", required=True, type=click.Path(dir_okay=False),
              help="Output file.")
@click.option("--seed", type=int, default=None, help="Seed for a reproducible draw.")
@click.option("--max-attempts", type=click.IntRange(min=1), default=None,
              help="Give up after this many candidates (default: SANTA_MAX_ATTEMPTS).")
@click.option("--timeout", type=click.FloatRange(min=0), default=None,
              help="Give up after this many seconds (default: SANTA_TIMEOUT).")
@click.option("--strict", is_flag=True,
              help="Reject forbidden entries naming unknown people (also on with SANTA_STRICT_FORBIDDEN).")
def draw_command(persons_files, forbidden_files, output_file, seed, max_attempts, timeout, strict):
    """Draw from JSON files and write the result to OUTPUT, without touching the database."""
    try:
        registry = read_persons(persons_files)
        forbidden = read_forbidden(forbidden_files)
        if strict or current_app.config.get("SANTA_STRICT_FORBIDDEN"):
            forbidden.require_known(registry)
        result = run_draw(
            registry,
            forbidden,
            rng=random.Random(seed) if seed is not None else random.SystemRandom(),
            max_attempts=max_attempts or current_app.config.get("SANTA_MAX_ATTEMPTS"),
            timeout=timeout if timeout is not None else current_app.config.get("SANTA_TIMEOUT"),
            precheck=True,
        )
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e

    write_assignment(result.assignment, output_file)
    click.echo(f"Wrote assignments for {len(result.assignment)} person(s) to {output_file} "
               f"after {result.attempts} attempt(s).")


@santa_cli.command("init-db")
def init_db_command():
    """Create the database tables."""
    db.create_all()
    click.echo("Initialized the database.")


@santa_cli.command("import-persons")
@click.argument("files", nargs=-1, required=True, type=_input_file)
def import_persons_command(files):
    try:
        families = import_persons(files)
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Imported {len(families)} famil(y/ies).")


@santa_cli.command("import-forbidden")
@click.argument("files", nargs=-1, required=True, type=_input_file)
@click.option("--strict", is_flag=True, help="Reject the files if they name anyone not imported.")
def import_forbidden_command(files, strict):
    try:
        added = import_forbidden(files, strict=strict)
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Imported {added} forbidden pair(s).")


@santa_cli.command("run")
def run_command():
    """Run and lock the draw for everyone in the database."""
    try:
        run_and_lock_assignments()
    except AssignmentError as e:
        raise click.ClickException(f"Failed to run assignments: {e}") from e
    click.echo("Assignments have been run and locked.")


@santa_cli.command("unset")
def unset_command():
    unset_and_unlock_assignments()
    click.echo("Assignments unset and unlocked.")


@santa_cli.command("export")
@click.option("--output", "-o", "output_file", type=click.Path(dir_okay=False), default=None,
              help="Output file (default: stdout).")
def export_command(output_file):
    try:
        data = export_assignments()
    except AssignmentError as e:
        raise click.ClickException(str(e)) from e

    if output_file:
        write_assignment(data, output_file)
        click.echo(f"Wrote {output_file}.")
    else:
        click.echo(json.dumps(dump_assignment(data), indent=4, ensure_ascii=False))
