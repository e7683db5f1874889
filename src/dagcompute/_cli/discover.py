"""Utilities to discover computation graphs in Python modules.

This module was adapted from `fastapi_cli.discover` of package `fastapi-cli` version 0.0.8 (77e6d1f).
"""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dagcompute._graph import ComputationGraph

if TYPE_CHECKING:
    from pathlib import Path
    from types import ModuleType

    from .config import GraphSource

logger = logging.getLogger(__name__)

DEFAULT_FACTORY_NAME = "build_graph"


@dataclass
class ModuleData:
    """Module data for a Python module."""

    module_import_str: str
    extra_sys_path: Path
    module_paths: list[Path]


def get_module_data_from_path(path: Path) -> ModuleData:
    """Get module data from a file path.

    Args:
        path: Path to a Python file or package

    Returns:
        ModuleData containing module import information

    """
    use_path = path.resolve()
    module_path = use_path
    if use_path.is_file() and use_path.stem == "__init__":
        module_path = use_path.parent
    module_paths = [module_path]
    extra_sys_path = module_path.parent
    for parent in module_path.parents:
        init_path = parent / "__init__.py"
        if init_path.is_file():
            module_paths.insert(0, parent)
            extra_sys_path = parent.parent
        else:
            break

    module_str = ".".join(p.stem for p in module_paths)
    return ModuleData(
        module_import_str=module_str,
        extra_sys_path=extra_sys_path.resolve(),
        module_paths=module_paths,
    )


def _materialize(obj: Any, where: str) -> ComputationGraph[Any]:
    """Turn a graph or a graph factory into a fresh graph."""
    if isinstance(obj, ComputationGraph):
        return obj
    if callable(obj):
        graph = obj()
        if isinstance(graph, ComputationGraph):
            return graph
        msg = f"{where} returned {type(graph).__name__}, expected a ComputationGraph"
        raise TypeError(msg)
    msg = f"{where} is neither a ComputationGraph nor a callable returning one"
    raise TypeError(msg)


def _infer_graph(module: ModuleType) -> ComputationGraph[Any]:
    """Find a graph factory or graph instance in a module."""
    factory = getattr(module, DEFAULT_FACTORY_NAME, None)
    if callable(factory):
        logger.debug(f"Found graph factory: {DEFAULT_FACTORY_NAME}")
        return _materialize(factory, f"'{DEFAULT_FACTORY_NAME}' in {module.__name__}")

    for name in dir(module):
        obj = getattr(module, name)
        if isinstance(obj, ComputationGraph):
            logger.debug(f"Found graph: {name}")
            return obj

    msg = f"Could not find a graph or '{DEFAULT_FACTORY_NAME}' in module, try using --graph"
    raise ValueError(msg)


def load_graph_from_script(script_path: Path, graph_name: str | None = None) -> ComputationGraph[Any]:
    """Load a graph from a Python script path.

    Args:
        script_path: Path to the Python script defining the graph
        graph_name: Name of the graph variable or factory. If None, infers from the script

    Returns:
        A graph ready to be inspected or computed

    Raises:
        ImportError: If the module cannot be imported
        ValueError: If no graph is found or the specified name doesn't exist
        TypeError: If the specified variable is not a graph or graph factory

    """
    module_data = get_module_data_from_path(script_path)
    sys.path.insert(0, str(module_data.extra_sys_path))

    try:
        module = importlib.import_module(module_data.module_import_str)
    except (ImportError, ValueError):
        logger.exception("Import error")
        logger.warning("Ensure all the package directories have an __init__.py file")
        raise

    if graph_name:
        if not hasattr(module, graph_name):
            msg = f"Could not find graph '{graph_name}' in {module_data.module_import_str}"
            raise ValueError(msg)
        return _materialize(getattr(module, graph_name), f"'{graph_name}' in {module_data.module_import_str}")

    return _infer_graph(module)


def load_graph_from_module_path(module_path: str) -> ComputationGraph[Any]:
    """Load a graph from a module path (e.g., 'examples.i32_math:build_graph').

    Args:
        module_path: Module path in format 'module.path:variable_name'

    Returns:
        A graph ready to be inspected or computed

    Raises:
        ValueError: If module path format is invalid
        TypeError: If the specified variable is not a graph or graph factory

    """
    if ":" not in module_path:
        msg = "Module path must be in format 'module.path:variable_name'"
        raise ValueError(msg)

    module_name, graph_name = module_path.split(":", 1)
    module = importlib.import_module(module_name)
    return _materialize(getattr(module, graph_name), f"'{graph_name}' in module '{module_name}'")


def load_graph_from_source(source: GraphSource) -> ComputationGraph[Any]:
    """Load a graph from a GraphSource (script or module).

    Args:
        source: GraphSource instance (ScriptSource or ModuleSource)

    Returns:
        A graph ready to be inspected or computed

    """
    from .config import ModuleSource, ScriptSource  # noqa: PLC0415

    match source:
        case ScriptSource(script=script, name=name):
            return load_graph_from_script(script, name)
        case ModuleSource(module_path=module_path):
            return load_graph_from_module_path(module_path)
