"""
Command Line Interface for the Timeline Generator.

Every editing command loads an exported timeline file through the sanitizer, applies one
editor operation and writes the file back atomically.
"""

import json
import logging
import sys
from pathlib import Path

import click
import yaml

from .config import load_config
from .grid import round_half_up
from .interaction import DragAction
from .logs import setup_logging
from .io import DATA_YAML, data_type_for, load_document, read_text, save_document
from .models import MilestoneItem, PhaseRow, starter_document
from .recovery import TimelineError
from .schema import export_schema, validate_payload
from .session import EditorSession
from .version import VERSION


def _fail(message):
    click.echo(f"❌ {message}")
    sys.exit(1)


def _open_session(ctx, file):
    try:
        return EditorSession(load_document(file), ctx.obj['config'])
    except TimelineError as e:
        _fail(f"Error loading {file}: {e}")


def _save_session(ctx, file, session):
    try:
        save_document(file, session.document, ctx.obj['config'])
    except TimelineError as e:
        _fail(f"Error saving {file}: {e}")


def _describe_item(item):
    if isinstance(item, MilestoneItem):
        return f"◆ milestone week {item.week}"
    return f"▬ {item.type} {item.start:g} → {item.end:g}"


@click.group()
@click.version_option(version=VERSION, prog_name="tlgen")
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='Editor config file (YAML)')
@click.option('--debug', is_flag=True, help='Print debug logging to the console')
@click.pass_context
def main(ctx, config_file, debug):
    """
    Timeline Generator - edit week-based Gantt timelines from the command line.

    Files are the JSON (or YAML) exports written by the editor.
    """
    if debug:
        setup_logging(logging.DEBUG)
    try:
        config = load_config(config_file)
    except TimelineError as e:
        _fail(f"Error loading config: {e}")
    ctx.obj = {'config': config}


@main.command()
@click.argument('file', type=click.Path(dir_okay=False))
@click.option('--weeks', type=int, default=None, help='Number of week columns')
@click.option('--force', is_flag=True, help='Overwrite an existing file')
@click.pass_context
def init(ctx, file, weeks, force):
    """Write a new timeline with the starter rows."""
    if Path(file).exists() and not force:
        _fail(f"{file} already exists (use --force to overwrite)")

    config = ctx.obj['config']
    document = starter_document(config.default_weeks)
    if weeks is not None:
        document.set_weeks_count(weeks)

    try:
        save_document(file, document, config, create_dirs=True)
    except TimelineError as e:
        _fail(f"Error initializing timeline: {e}")

    click.echo(f"🚀 Created {file} with {document.weeks_count} weeks")
    click.echo(f"💡 Use 'tlgen status {file}' to look at it")


@main.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def status(ctx, file):
    """Show the weeks, rows and items of a timeline."""
    session = _open_session(ctx, file)
    document = session.document

    click.echo(f"📅 {file}")
    click.echo(f"   Weeks: {document.weeks_count}")
    click.echo(f"   Row height: {document.row_height_mode.value} ({document.manual_row_height}px manual)")
    click.echo(f"   Bar height: {document.bar_height_mode.value} ({document.manual_bar_height}px manual)")
    click.echo("")
    click.echo("📋 Rows:")
    for position, row in enumerate(document.rows, start=1):
        if isinstance(row, PhaseRow):
            click.echo(f"   {position}. ━━ {row.label} [phase] ({row.id})")
            continue
        click.echo(f"   {position}. {row.label} ({row.id})")
        for item in row.items:
            click.echo(f"        {_describe_item(item)} ({item.id})")


@main.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
def validate(file):
    """Check a file strictly, without repairing anything."""
    try:
        text = read_text(file)
    except TimelineError as e:
        _fail(str(e))

    try:
        if data_type_for(file) == DATA_YAML:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        _fail(f"{file} cannot be parsed: {e}")

    problems = validate_payload(data)
    if problems:
        click.echo(f"❌ {file} has {len(problems)} problem(s):")
        for problem in problems:
            click.echo(f"   • {problem}")
        sys.exit(1)
    click.echo(f"✅ {file} is valid")


@main.command()
@click.argument('src', type=click.Path(exists=True, dir_okay=False))
@click.argument('dest', type=click.Path(dir_okay=False))
@click.pass_context
def sanitize(ctx, src, dest):
    """Repair SRC into a valid export written to DEST."""
    session = _open_session(ctx, src)
    _save_session(ctx, dest, session)
    click.echo(f"🧹 Wrote repaired timeline to {dest}")


@main.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('count')
@click.pass_context
def weeks(ctx, file, count):
    """Set the number of week columns; items are pulled inside the new range."""
    session = _open_session(ctx, file)
    applied = session.set_weeks_count(count)
    _save_session(ctx, file, session)
    click.echo(f"📅 Weeks set to {applied}")


@main.group()
def row():
    """Add, delete and reorder rows."""
    pass


@row.command('add')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('label')
@click.option('--phase', is_flag=True, help='Add a phase band instead of a task row')
@click.pass_context
def row_add(ctx, file, label, phase):
    """Append a row labelled LABEL."""
    session = _open_session(ctx, file)
    new_row = session.add_phase_row(label) if phase else session.add_task_row(label)
    _save_session(ctx, file, session)
    click.echo(f"✅ Added {new_row.kind} row '{new_row.label}' ({new_row.id})")


@row.command('delete')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('row_id')
@click.pass_context
def row_delete(ctx, file, row_id):
    """Delete the row with id ROW_ID."""
    session = _open_session(ctx, file)
    if not session.delete_row(row_id):
        _fail(f"No row with id {row_id}")
    _save_session(ctx, file, session)
    click.echo(f"🗑️  Deleted row {row_id}")


@row.command('swap')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('first', type=int)
@click.argument('second', type=int)
@click.pass_context
def row_swap(ctx, file, first, second):
    """Swap the rows at positions FIRST and SECOND (counting from 1)."""
    session = _open_session(ctx, file)
    if not session.swap_rows(first - 1, second - 1):
        _fail(f"Positions must be between 1 and {len(session.document.rows)}")
    _save_session(ctx, file, session)
    click.echo(f"🔀 Swapped rows {first} and {second}")


@main.group()
def item():
    """Add, remove and move items."""
    pass


@item.command('add')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('row_id')
@click.option('--type', 'item_type', type=click.Choice(['bar', 'discovery']), default='bar', help='Kind of range')
@click.option('--start', type=float, default=None, help='First week (half weeks allowed)')
@click.option('--end', type=float, default=None, help='Last week (half weeks allowed)')
@click.pass_context
def item_add(ctx, file, row_id, item_type, start, end):
    """Add a bar or discovery range to the task row ROW_ID."""
    session = _open_session(ctx, file)
    new_item = session.add_item(item_type, start, end, row_id=row_id)
    if new_item is None:
        _fail(f"No task row with id {row_id}")
    _save_session(ctx, file, session)
    click.echo(f"✅ Added {_describe_item(new_item)} ({new_item.id})")


@item.command('milestone')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('row_id')
@click.argument('week')
@click.pass_context
def item_milestone(ctx, file, row_id, week):
    """Add a milestone at WEEK to the task row ROW_ID."""
    session = _open_session(ctx, file)
    new_item = session.add_milestone(week, row_id=row_id)
    if new_item is None:
        _fail(f"No task row with id {row_id}")
    _save_session(ctx, file, session)
    click.echo(f"✅ Added {_describe_item(new_item)} ({new_item.id})")


@item.command('remove')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('row_id')
@click.argument('item_id')
@click.pass_context
def item_remove(ctx, file, row_id, item_id):
    """Remove the item ITEM_ID from the row ROW_ID."""
    session = _open_session(ctx, file)
    if not session.remove_item(row_id, item_id):
        _fail(f"No item {item_id} in row {row_id}")
    _save_session(ctx, file, session)
    click.echo(f"🗑️  Removed item {item_id}")


@item.command('nudge')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.argument('row_id')
@click.argument('item_id')
@click.argument('weeks', type=float)
@click.option('--action', type=click.Choice([a.value for a in DragAction]), default=DragAction.MOVE.value,
              help='Which part of the item to drag')
@click.pass_context
def item_nudge(ctx, file, row_id, item_id, weeks, action):
    """Drag an item by WEEKS (negative moves left), exactly like a pointer drag."""
    session = _open_session(ctx, file)
    session.set_interactive(True)

    # One pixel per half-week column, so the pointer offset is the number of half steps.
    interaction = session.interaction
    if not interaction.begin_drag(row_id, item_id, action, 0, 1.0):
        _fail(f"No item {item_id} in row {row_id}")
    interaction.drag_to(round_half_up(weeks * 2))
    if not interaction.end_drag():
        click.echo("💤 Nothing moved")
        return

    _save_session(ctx, file, session)
    click.echo(f"↔️  Now {_describe_item(session.document.find_item(row_id, item_id))}")


@main.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--width', type=float, default=None, help='Container width in px for the column metrics')
@click.pass_context
def sizing(ctx, file, width):
    """Show the pixel sizes a renderer would use for FILE."""
    session = _open_session(ctx, file)

    click.echo("📐 Sizing:")
    for name, value in session.sizing().model_dump().items():
        click.echo(f"   {name}: {value}")

    if width is not None:
        session.resize(width)
        columns = session.columns()
        click.echo("📏 Columns:")
        click.echo(f"   available_px: {columns.available_px:g}")
        click.echo(f"   week_col_px: {columns.week_col_px:g}")
        click.echo(f"   half_col_px: {columns.half_col_px:g}")


@main.command()
@click.option('--out', type=click.Path(dir_okay=False), default=None, help='Write the schema to a file')
def schema(out):
    """Print the JSON Schema of exported files."""
    text = json.dumps(export_schema(), indent=2)
    if out is None:
        click.echo(text)
        return
    try:
        Path(out).write_text(text + "\n", encoding='utf-8')
    except OSError as e:
        _fail(f"Error writing schema: {e}")
    click.echo(f"📄 Schema written to {out}")


if __name__ == '__main__':
    main()
