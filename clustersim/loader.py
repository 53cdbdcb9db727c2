"""
Historical error table loading.

Reads a JSON or YAML file shaped as {site: {error_code: count}} and validates it
into an ErrorFrequencyTable. Every failure is a ConfigurationError so the CLI
can abort before any simulation starts.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import ConfigurationError
from .models import ErrorFrequencyTable

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def parse_error_table(data: Any) -> ErrorFrequencyTable:
    """
    Validate already-decoded data into an ErrorFrequencyTable.

    Keys are normalized to strings (YAML reads bare numeric codes as ints).

    Raises:
        ConfigurationError: if the structure is not site -> code -> non-negative int
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"error table must be a mapping of site -> codes, got {type(data).__name__}"
        )

    normalized: dict[str, Any] = {}
    for site, codes in data.items():
        if not isinstance(codes, dict):
            raise ConfigurationError(
                f"site '{site}' must map error codes to counts, got {type(codes).__name__}"
            )
        normalized[str(site)] = {str(code): count for code, count in codes.items()}

    try:
        return ErrorFrequencyTable.model_validate(normalized)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid error table: {exc}") from exc


def load_error_table(path) -> ErrorFrequencyTable:
    """
    Load a historical error table from a .json, .yaml or .yml file.

    Raises:
        ConfigurationError: missing/unreadable file, parse failure, bad structure
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Could not open {path}")

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as exc:
        raise ConfigurationError(f"Could not open {path}: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse {path}: {exc}") from exc

    table = parse_error_table(data)
    logger.info("loaded error table from %s (%d sites)", path, len(table.sites()))
    return table


def require_site(table: ErrorFrequencyTable, site: str) -> None:
    """
    Make a missing site fatal.

    Used for --strict-site runs; without it a missing site only disables
    historical injection (see ErrorModel.for_site).

    Raises:
        ConfigurationError: if the site is not in the table
    """
    if not table.has_site(site):
        available = ", ".join(table.sites()) or "<none>"
        raise ConfigurationError(f"Site not found: {site} (available: {available})")
