"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Load a YAML engine configuration file and parse it into the typed module
configs (``ReportingConfig``, ``ConsolidationConfig``) plus any exchange
rate quotes it carries.

Architecture position
---------------------
**Config layer** -- infrastructure tooling above the kernel.  Modules never
read files themselves; callers load an ``EngineConfig`` here and pass the
parsed configs to the services.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; unknown top-level sections are rejected.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in a rate quote  -> ``KeyError`` propagates.
* Invalid date format  -> ``ValueError`` from ``date.fromisoformat``.

Audit relevance
---------------
The checksum is logged on every load so that the configuration behind a
report or consolidation run can be matched to a version-controlled file.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from ledger_engines.translation import RateQuote, RateType
from ledger_kernel.logging_config import get_logger
from ledger_modules.consolidation.config import ConsolidationConfig
from ledger_modules.reporting.config import ReportingConfig

logger = get_logger("config.loader")

_SECTIONS = frozenset({"reporting", "consolidation", "exchange_rates"})


@dataclass(frozen=True)
class EngineConfig:
    """Parsed engine configuration and the checksum of its source."""

    reporting: ReportingConfig
    consolidation: ConsolidationConfig
    exchange_rates: tuple[RateQuote, ...]
    checksum: str


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_rate_quote(data: dict[str, Any]) -> RateQuote:
    """
    Parse one exchange rate quote.

    Rates are read through ``str`` so that YAML floats keep the digits
    written in the file.
    """
    return RateQuote(
        from_currency=data["from"],
        to_currency=data["to"],
        effective_date=parse_date(data["date"]),
        rate=data["rate"] if isinstance(data["rate"], str) else str(data["rate"]),
        rate_type=RateType(data.get("type", RateType.CLOSING.value)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """
    Build an ``EngineConfig`` from an already-loaded mapping.

    Missing sections fall back to the module defaults.
    """
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    reporting_data = data.get("reporting") or {}
    consolidation_data = data.get("consolidation") or {}
    reporting = (
        ReportingConfig.from_dict(reporting_data)
        if reporting_data else ReportingConfig.with_defaults()
    )
    consolidation = (
        ConsolidationConfig.from_dict(consolidation_data)
        if consolidation_data else ConsolidationConfig.with_defaults()
    )
    rates = tuple(parse_rate_quote(q) for q in data.get("exchange_rates") or ())

    return EngineConfig(
        reporting=reporting,
        consolidation=consolidation,
        exchange_rates=rates,
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path | str) -> EngineConfig:
    """Load and parse a YAML engine configuration file."""
    path = Path(path)
    config = parse_engine_config(load_yaml_file(path))
    logger.info(
        "engine_config_loaded",
        extra={
            "path": str(path),
            "checksum": config.checksum,
            "rate_count": len(config.exchange_rates),
        },
    )
    return config
