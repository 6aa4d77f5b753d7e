"""
ledger_config -- YAML configuration for the reporting and consolidation engine.

Responsibility:
    Turn a YAML file into the typed configs the modules accept.  The
    kernel and engines never import from this package.

Failure modes:
    - ``FileNotFoundError`` / ``yaml.YAMLError`` from reading the file.
    - ``ValueError`` / ``KeyError`` for invalid or incomplete sections.
"""

from ledger_config.loader import (
    EngineConfig,
    compute_checksum,
    load_engine_config,
    load_yaml_file,
    parse_date,
    parse_engine_config,
    parse_rate_quote,
)

__all__ = [
    "EngineConfig",
    "compute_checksum",
    "load_engine_config",
    "load_yaml_file",
    "parse_date",
    "parse_engine_config",
    "parse_rate_quote",
]
