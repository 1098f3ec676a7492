"""Seed loader for populating the catalog from JSON exports.

Producer records carry their name under ``producer`` or ``name``; wine
records refer to their producer by that name. Legacy field names
(``goes_well_with``) are mapped onto the current model, and stored rating
aggregates are ignored since they are always computed from ratings.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from wine_catalog.core.schema import Producer, Wine
from wine_catalog.services.catalog_service import CatalogStore

logger = logging.getLogger(__name__)

# Legacy field name -> model field name
WINE_FIELD_ALIASES = {
    "goes_well_with": "pairing_note",
    "pairingNote": "pairing_note",
    "averagePrice": "average_price",
    "imageUrl": "image_url",
    "addedSulfites": "added_sulfites",
}
PRODUCER_FIELD_ALIASES = {
    "producer": "name",
    "producer_name": "name",
    "imageUrl": "image_url",
}
IGNORED_WINE_FIELDS = {"_id", "id", "producer", "average_rating", "ratings_count", "averageRating", "ratingsCount"}


@dataclass
class SeedResult:
    """Summary of a seed run."""

    producers_created: int = 0
    wines_created: int = 0
    skipped: list[str] = field(default_factory=list)
    wines_deleted: int = 0
    producers_deleted: int = 0


def load_json_records(path: Path | str) -> list[dict[str, Any]]:
    """
    Read a JSON array of objects from a file.

    Raises:
        ValueError: If the file does not contain a JSON array of objects.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"{path} must contain a JSON array of objects")
    return data


def _rename(record: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    return {aliases.get(key, key): value for key, value in record.items()}


def seed_catalog(
    catalog: CatalogStore,
    producers: list[dict[str, Any]],
    wines: list[dict[str, Any]],
    reset: bool = False,
) -> SeedResult:
    """
    Load producers and wines into the catalog.

    Invalid records are skipped and reported rather than aborting the run.

    Args:
        catalog: Target catalog store.
        producers: Raw producer records.
        wines: Raw wine records referencing producers by name.
        reset: If True, delete all existing wines and producers first.

    Returns:
        SeedResult with counts and the reasons for skipped records.
    """
    result = SeedResult()

    if reset:
        logger.info("Re-seeding database")
        result.wines_deleted, result.producers_deleted = catalog.clear()

    producer_ids: dict[str, Any] = {}
    for index, raw in enumerate(producers):
        data = _rename(raw, PRODUCER_FIELD_ALIASES)
        data.pop("_id", None)
        data.pop("id", None)
        try:
            producer = catalog.create_producer(Producer(**data))
        except PydanticValidationError as e:
            result.skipped.append(f"producer #{index}: {e.errors()[0]['msg']}")
            continue
        producer_ids.setdefault(producer.name, producer.id)
        result.producers_created += 1

    for index, raw in enumerate(wines):
        data = _rename(raw, WINE_FIELD_ALIASES)
        producer_name = data.get("producer")
        data = {key: value for key, value in data.items() if key not in IGNORED_WINE_FIELDS}

        if producer_name:
            if producer_name not in producer_ids:
                result.skipped.append(f"wine #{index}: unknown producer {producer_name!r}")
                continue
            data["producer_id"] = producer_ids[producer_name]

        try:
            catalog.create_wine(Wine(**data))
        except PydanticValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            result.skipped.append(f"wine #{index}: {location}: {error['msg']}")
            continue
        result.wines_created += 1

    for reason in result.skipped:
        logger.warning(f"Skipped seed record {reason}")
    logger.info(
        f"Seeded {result.producers_created} producers and {result.wines_created} wines "
        f"({len(result.skipped)} skipped)"
    )
    return result
