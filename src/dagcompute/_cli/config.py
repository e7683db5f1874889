"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast


class ConfigError(Exception):
    """Error in dagcompute configuration."""


@dataclass(slots=True, frozen=True)
class ScriptSource:
    """Script path with optional variable name."""

    script: Path
    name: str | None = None


@dataclass(slots=True, frozen=True)
class ModuleSource:
    """Module path with variable name (e.g., 'examples.i32_math:build_graph')."""

    module_path: str


GraphSource = ScriptSource | ModuleSource


@dataclass(slots=True, frozen=True)
class DagcomputeConfig:
    """Configuration loaded from pyproject.toml.

    All relative paths are resolved from the project root (directory containing pyproject.toml).
    """

    graph: GraphSource | None = None
    dot_output: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def parse_graph_source(value: object, project_root: Path | None = None) -> GraphSource:
    """Parse a graph source given as a string or a table.

    Strings containing ':' are module paths unless they end in '.py'; other
    strings are script paths.
    Tables must carry a 'script' key and may name the variable with 'name'.

    Args:
        value: The raw value (string or dict)
        project_root: Directory relative script paths are resolved from

    Returns:
        Parsed GraphSource

    Raises:
        ConfigError: If the value format is invalid

    """
    if isinstance(value, str):
        if ":" in value and not value.endswith(".py"):
            return ModuleSource(module_path=value)
        value = {"script": value}

    if isinstance(value, dict):
        value_dict = cast("dict[str, object]", value)
        if "script" not in value_dict:
            msg = "Invalid [tool.dagcompute].graph configuration. Expected string or table with 'script' key."
            raise ConfigError(msg)

        script_value = value_dict["script"]
        if not isinstance(script_value, str):
            msg = "Invalid [tool.dagcompute].graph.script: expected string path"
            raise ConfigError(msg)
        script_path = Path(script_value)
        if project_root is not None and not script_path.is_absolute():
            script_path = project_root / script_path

        name = value_dict.get("name")
        if name is not None and not isinstance(name, str):
            msg = "Invalid [tool.dagcompute].graph.name: expected string"
            raise ConfigError(msg)

        return ScriptSource(script=script_path, name=name)

    msg = "Invalid [tool.dagcompute].graph configuration. Expected string or table with 'script' key."
    raise ConfigError(msg)


def load_config(pyproject_path: Path) -> DagcomputeConfig:
    """Load and validate [tool.dagcompute] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed DagcomputeConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("dagcompute", {})
    if not section:
        return DagcomputeConfig(project_root=project_root)

    graph_source: GraphSource | None = None
    if "graph" in section:
        graph_source = parse_graph_source(section["graph"], project_root)

    dot_output: Path | None = None
    if "dot_output" in section:
        dot_value = section["dot_output"]
        if not isinstance(dot_value, str):
            msg = "Invalid [tool.dagcompute].dot_output: expected string path"
            raise ConfigError(msg)
        dot_output = Path(dot_value)
        if not dot_output.is_absolute():
            dot_output = project_root / dot_output

    return DagcomputeConfig(
        graph=graph_source,
        dot_output=dot_output,
        project_root=project_root,
    )


def get_config() -> DagcomputeConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        DagcomputeConfig (may be empty if no pyproject.toml or no [tool.dagcompute] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return DagcomputeConfig()
    return load_config(pyproject_path)
