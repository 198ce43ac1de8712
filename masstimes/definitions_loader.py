"""Loading event definitions from YAML/JSON files for masstimes.

Files hold a list of EventDefinition mappings (or ``{"events": [...]}``) in the
model's own field names. Entries that fail validation are skipped so one bad
record never hides the rest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import DefinitionLoadError
from .models import EventDefinition

logger = logging.getLogger(__name__)


def parse_definitions(raw: Any) -> list[EventDefinition]:
    """Validate already-loaded data into EventDefinitions.

    Args:
        raw: A list of mappings, or a mapping with an ``events`` list

    Returns:
        Valid definitions in input order

    Raises:
        DefinitionLoadError: If the top-level shape is not a list of definitions
    """
    if isinstance(raw, dict):
        raw = raw.get("events")
    if not isinstance(raw, list):
        raise DefinitionLoadError("Definitions must be a list or a mapping with an 'events' list")

    definitions = []
    for position, item in enumerate(raw):
        try:
            definitions.append(EventDefinition.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid event definition #%d: %d validation error(s): %s",
                position,
                e.error_count(),
                e.errors()[0]["msg"] if e.errors() else "",
            )
    logger.debug("Parsed %d of %d event definitions", len(definitions), len(raw))
    return definitions


def load_definitions(path: str | Path) -> list[EventDefinition]:
    """Load event definitions from a YAML or JSON file.

    Raises:
        DefinitionLoadError: If the file cannot be read or parsed
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise DefinitionLoadError(f"Cannot read definitions file {p}: {e}") from e
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        raise DefinitionLoadError(f"Cannot parse definitions file {p}: {e}") from e

    definitions = parse_definitions(raw if raw is not None else [])
    logger.info("Loaded %d event definitions from %s", len(definitions), p)
    return definitions
