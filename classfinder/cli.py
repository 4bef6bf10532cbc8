"""Command-line interface for classfinder."""

import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import Config
from .core.errors import EmptyResultError
from .core.hierarchy import ClassHierarchyResolver
from .core.types import ClassInfo, Modifier
from .filters import (
    AbstractOnly,
    And,
    Annotated,
    ClassFilter,
    HasModifiers,
    InPackage,
    InterfaceOnly,
    NameMatches,
    Not,
    SubclassOf,
)
from .finder import ClassFinder
from .utils.logging_setup import get_logger, log_operation, setup_logging

logger = get_logger(__name__)
console = Console()


def _build_finder(paths: Tuple[str, ...], config_path: Optional[str],
                  workers: Optional[int], error_if_empty: bool,
                  verbose: bool) -> ClassFinder:
    if config_path:
        config = Config.from_file(config_path)
    else:
        config = Config.find_and_load(Path.cwd())

    level = "DEBUG" if verbose else config.get("logging.level", "WARNING")
    log_dir = config.get("logging.log_dir")
    setup_logging(
        level=level,
        log_dir=Path(log_dir) if log_dir else None,
        file=bool(log_dir),
        json_format=bool(config.get("logging.json_format", False)),
    )

    if workers is not None:
        config.set("parallel.max_workers", workers)
    if error_if_empty:
        config.set("error_if_empty", True)

    finder = ClassFinder.from_config(config)
    rejected = [path for path in paths if not finder.add(path)]
    for path in rejected:
        console.print(f"[yellow]Skipping {path}: not a directory, jar or zip file[/yellow]")
    return finder


def _build_filter(interface: bool, abstract: bool, concrete: bool,
                  subclass_of: Tuple[str, ...], annotated: Tuple[str, ...],
                  name: Optional[str], package: Optional[str]) -> Optional[ClassFilter]:
    filters: List[ClassFilter] = []
    if interface:
        filters.append(InterfaceOnly())
    if abstract:
        filters.append(AbstractOnly())
    if concrete:
        filters.append(Not(HasModifiers(Modifier.ABSTRACT)))
    filters.extend(SubclassOf(n) for n in subclass_of)
    filters.extend(Annotated(n) for n in annotated)
    if name:
        filters.append(NameMatches(name))
    if package:
        filters.append(InPackage(package))

    if not filters:
        return None
    return And.all_of(*filters)


def _class_to_dict(info: ClassInfo) -> dict:
    return {
        "name": info.name,
        "superclass": info.superclass_name,
        "interfaces": list(info.interfaces),
        "modifiers": int(info.modifiers),
        "interface": info.is_interface,
        "abstract": info.is_abstract,
        "annotations": sorted(a.name for a in info.annotations),
        "location": str(info.location) if info.location else None,
    }


def _render_table(classes: List[ClassInfo]) -> None:
    table = Table(title=f"{len(classes)} classes found")
    table.add_column("Class", style="cyan")
    table.add_column("Kind")
    table.add_column("Extends")
    table.add_column("Implements")
    table.add_column("Location", style="dim")

    for info in classes:
        if info.is_annotation:
            kind = "annotation"
        elif info.is_interface:
            kind = "interface"
        elif info.is_enum:
            kind = "enum"
        elif info.is_abstract:
            kind = "abstract class"
        else:
            kind = "class"
        table.add_row(
            info.name,
            kind,
            info.superclass_name or "",
            ", ".join(info.interfaces),
            str(info.location or ""),
        )
    console.print(table)


@click.group()
@click.version_option(__version__, prog_name="classfinder")
def main():
    """Find compiled classes in directories, jars and zip files."""


@main.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--interface", is_flag=True, help="Only interfaces")
@click.option("--abstract", is_flag=True, help="Only abstract classes (not interfaces)")
@click.option("--concrete", is_flag=True, help="Only non-abstract classes")
@click.option("--subclass-of", multiple=True, metavar="CLASS", help="Must extend or implement CLASS")
@click.option("--annotated", multiple=True, metavar="ANNOTATION", help="Must carry ANNOTATION")
@click.option("--name", metavar="REGEX", help="Class name must match REGEX")
@click.option("--package", metavar="PACKAGE", help="Only classes in PACKAGE or its subpackages")
@click.option("--error-if-empty", is_flag=True, help="Exit with status 1 when nothing matches")
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option("--workers", type=click.IntRange(min=1), help="Worker threads for scanning")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to configuration file")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def find(paths, interface, abstract, concrete, subclass_of, annotated, name, package,
         error_if_empty, as_json, workers, config_path, verbose):
    """Find classes under PATHS matching every given condition."""
    finder = _build_finder(paths, config_path, workers, error_if_empty, verbose)
    class_filter = _build_filter(interface, abstract, concrete, subclass_of, annotated, name, package)
    log_operation(logger, "find", roots=len(finder.roots), filter=repr(class_filter))

    try:
        classes = finder.find_classes(class_filter)
    except EmptyResultError as e:
        console.print(f"[red]{e.message}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([_class_to_dict(info) for info in classes], indent=2))
    else:
        _render_table(classes)


@main.command()
@click.argument("class_name")
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--workers", type=click.IntRange(min=1), help="Worker threads for scanning")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to configuration file")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def hierarchy(class_name, paths, workers, config_path, verbose):
    """Show the known superclasses and interfaces of CLASS_NAME."""
    finder = _build_finder(paths, config_path, workers, False, verbose)
    registry = finder.load_registry()

    info = registry.get(class_name)
    if info is None:
        console.print(f"[red]Class {class_name} not found[/red]")
        sys.exit(1)

    resolver = ClassHierarchyResolver(registry)
    tree = Tree(f"[bold]{info}[/bold]")
    supers = tree.add("superclasses")
    for name in resolver.find_all_superclasses(info):
        supers.add(name)
    interfaces = tree.add("interfaces")
    for name in sorted(resolver.find_all_interfaces(info)):
        interfaces.add(name)
    console.print(tree)


if __name__ == "__main__":
    main()
