"""lucid_rag.config.global_config

Global configuration loader and accessors.

This module defines a lightweight wrapper around a raw YAML configuration
dictionary, providing validated, cached access to the configuration sections
used across the RAG pipeline.

Environment variables of the form ``${VAR}`` are expanded recursively in all
string values at load time.

Classes
-------
GlobalConfig
    Loader and accessor for global project configuration.
"""

import os
import yaml
from pathlib import Path
from functools import cached_property

def _expand_env(obj):
    """Recursively expand environment variables in a nested structure.

    This function walks nested dictionaries and lists and applies
    :func:`os.path.expandvars` to any string values, expanding patterns of the
    form ``${VAR}`` using the current process environment. Unset variables are
    left as-is.

    Parameters
    ----------
    obj : Any
        Object to expand. Supported types are dictionaries, lists, and strings.
        Other types are returned unchanged.

    Returns
    -------
    Any
        A structure of the same shape as ``obj`` with environment variables
        expanded in all string values.
    """
    if isinstance(obj, dict):
        return {k: _expand_env(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(v) for v in obj]
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    return obj

class GlobalConfig:
    """Loader and accessor for global project configuration.

    This class wraps a raw configuration dictionary (typically loaded from YAML)
    and exposes validated, cached accessors for each configuration section.
    Every section is optional; a missing section reads as an empty mapping.

    Parameters
    ----------
    raw : dict
        Raw configuration data as loaded from a YAML file.
    config_path : Path or None, optional
        Absolute path of the loaded file, used to resolve relative paths.
    """

    def __init__(
            self,
            raw: dict | None,
            config_path: Path | None = None,
        ):
        self.raw = raw or {}
        self.config_path = config_path

    @classmethod
    def load(
            cls,
            path: str | Path,
        ) -> "GlobalConfig":
        """Load configuration from a YAML file.

        Parameters
        ----------
        path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        GlobalConfig
            An instance initialised with the loaded and environment-expanded data.

        Notes
        -----
        All string values in the loaded YAML are processed with recursive
        environment-variable expansion (``${VAR}``) via :func:`os.path.expandvars`.
        """
        cfg_path = Path(path).expanduser().resolve()
        with cfg_path.open("r") as f:
            data = yaml.safe_load(f)
        data = _expand_env(data)
        return cls(data, config_path=cfg_path)

    def _section(self, name: str) -> dict:
        section = self.raw.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise TypeError(f"'{name}' must be a mapping, got {type(section)}.")
        return section

    @cached_property
    def embedder(self) -> dict:
        """Return the ``embedder`` configuration section."""
        return self._section("embedder")

    @cached_property
    def generator_llm(self) -> dict:
        """Return the ``generator_llm`` configuration section."""
        return self._section("generator_llm")

    @cached_property
    def chunk_store(self) -> dict:
        """Return the ``chunk_store`` configuration section.

        Returns
        -------
        dict
            The ``chunk_store`` section, or an empty dict (in-memory store) if
            not present.
        """
        return self._section("chunk_store")

    @cached_property
    def chunking(self) -> dict:
        """Return the ``chunking`` configuration section.

        Raises
        ------
        ValueError
            If ``chunk_size`` or ``chunk_overlap`` is not an integer.
        """
        section = self._section("chunking")
        for key in ("chunk_size", "chunk_overlap"):
            value = section.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValueError(f"'chunking.{key}' must be an integer, got {value!r}.")
        return section

    @cached_property
    def rag(self) -> dict:
        """Return the ``rag`` (query defaults and answers) configuration section."""
        return self._section("rag")

    @cached_property
    def prompts(self):
        """Return the ``rag.prompts`` entry.

        Returns
        -------
        str or list[str] or None
            A single JSON prompt file, a list of them, or ``None`` if not
            configured.

        Notes
        -----
        This accessor returns the raw configured value without validation. Callers
        are responsible for handling ``None`` and normalising single vs multiple
        prompt paths.
        """
        return self.rag.get("prompts")

    @cached_property
    def prompt_name(self) -> str | None:
        """Return the configured ``rag.prompt_name``, or ``None``."""
        return self.rag.get("prompt_name")
