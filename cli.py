#!/usr/bin/env python3
"""
ontolite command-line driver.

Runs session commands from a script file or an interactive prompt. A command
line is a session command name (``create_classes`` or ``createClasses``)
followed by its arguments. Single-argument commands take the rest of the line
verbatim, so Manchester syntax needs no quoting:

    create_ontology http://example.org/animals#
    create_classes Animal Mammal Cat
    create_axiom Cat SubClassOf Mammal
    get_super_classes Cat
    create_object_property hasPart 1 0 0
"""

import inspect
import logging
import shlex
import sys
from typing import Callable, Dict, Optional

import click

from config import get_config_loader, load_ontolite_config
from core.session import Session, get_session
from reasoners.registry import REASONERS

logger = logging.getLogger(__name__)

EXIT_WORDS = ('quit', 'exit')


def _key(name: str) -> str:
    return name.replace('_', '').lower()


def session_commands(session: Session) -> Dict[str, Callable]:
    """Public session methods, keyed case- and underscore-insensitively."""
    commands = {}
    # looked up on the class so properties such as ``iri`` are never evaluated
    for name, _ in inspect.getmembers(type(session), inspect.isfunction):
        if name.startswith('_'):
            continue
        commands.setdefault(_key(name), getattr(session, name))
    return commands


def _coerce(token: str):
    if token.isdigit():
        return int(token)
    if token.lower() in ('true', 'false'):
        return token.lower() == 'true'
    return token


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "'"):
        return text[1:-1]
    return text


def execute_line(session: Session, line: str, commands: Optional[Dict[str, Callable]] = None) -> bool:
    """
    Execute one script line against a session.

    Returns:
        False if the line names no known command or has the wrong arguments
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return True
    name, _, rest = line.partition(' ')
    rest = rest.strip()
    method = (commands or session_commands(session)).get(_key(name))
    if method is None:
        click.echo(f"Unknown command: {name}")
        return False

    parameters = [p for p in inspect.signature(method).parameters.values()
                  if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    required = [p for p in parameters if p.default is p.empty]
    if not parameters:
        args = []
    elif len(parameters) == 1:
        args = [_unquote(rest)] if rest else []
    else:
        try:
            args = [_coerce(token) for token in shlex.split(rest)]
        except ValueError as e:
            click.echo(f"Cannot split arguments for {name}: {str(e)}")
            return False

    if len(args) < len(required) or len(args) > len(parameters):
        click.echo(f"Wrong number of arguments for {name}: expected "
                   f"{', '.join(p.name for p in parameters) or 'none'}")
        return False

    logger.debug(f"Executing {method.__name__}{tuple(args)}")
    method(*args)
    return True


def _configure(environment: Optional[str]):
    load_ontolite_config(environment)
    level = get_config_loader().get_log_level()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group()
@click.option('--env', 'environment', default=None,
              help='Configuration environment (config/<env>.env)')
@click.option('--reasoner', default=None, help='Reasoner to start with (EL, HERMIT, PELLET)')
@click.pass_context
def main(ctx, environment, reasoner):
    """ontolite: edit and reason about OWL 2 ontologies with short commands."""
    _configure(environment)
    ctx.ensure_object(dict)
    ctx.obj['reasoner'] = reasoner


def _session(ctx) -> Session:
    session = get_session()
    if ctx.obj.get('reasoner'):
        session.set_reasoner(ctx.obj['reasoner'])
    return session


@main.command()
@click.argument('script', type=click.File('r'))
@click.option('--stop-on-error', is_flag=True, help='Stop at the first unknown command')
@click.pass_context
def run(ctx, script, stop_on_error):
    """Run the commands in SCRIPT, one per line."""
    session = _session(ctx)
    commands = session_commands(session)
    failures = 0
    for number, line in enumerate(script, 1):
        if not execute_line(session, line, commands):
            failures += 1
            logger.warning(f"⚠️  Line {number} of {script.name} was not executed")
            if stop_on_error:
                break
    session.close()
    if failures:
        sys.exit(1)


@main.command()
@click.pass_context
def shell(ctx):
    """Read commands interactively until 'quit' or end of input."""
    session = _session(ctx)
    commands = session_commands(session)
    click.echo("ontolite shell; type 'quit' to leave")
    while True:
        try:
            line = click.prompt('ontolite', prompt_suffix='> ', default='', show_default=False)
        except (EOFError, click.Abort):
            break
        if line.strip().lower() in EXIT_WORDS:
            break
        execute_line(session, line, commands)
    session.close()


@main.command()
def reasoners():
    """List the available reasoners and their OWL 2 profiles."""
    default = get_config_loader().get_default_reasoner()
    for record in REASONERS:
        marker = '*' if record.display_name == default else ' '
        click.echo(f"{marker} {record.display_name:<8} {record.profile}")


if __name__ == '__main__':
    main()
