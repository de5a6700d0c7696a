# data.py
import json
import logging
import re
from typing import Dict, Iterable, Optional
from pathlib import Path

from mac_vendor_lookup import BaseMacLookup

logger = logging.getLogger(__name__)

PREFIX_PATTERN = re.compile(r"^[0-9A-F]{6}$")


def _clean_prefix(prefix: str) -> Optional[str]:
    cleaned = re.sub(r"[^0-9A-Fa-f]", "", prefix).upper()[:6]
    return cleaned if PREFIX_PATTERN.match(cleaned) else None


def _table_from_records(records: Iterable) -> Dict[str, str]:
    """Builds a vendor table from JSON OUI records.

    A record is ``{"prefix": "AABBCC", "organization": {"name": "Acme"}}``
    or, flatter, ``{"prefix": "AABBCC", "name": "Acme"}``. Records without a
    usable prefix or name are skipped.
    """
    table: Dict[str, str] = {}
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            continue
        organization = record.get("organization")
        name = organization.get("name") if isinstance(organization, dict) else record.get("name")
        prefix = _clean_prefix(str(record.get("prefix", "")))
        if not prefix or not name:
            skipped += 1
            continue
        table[prefix] = str(name).strip()
    if skipped:
        logger.debug("Skipped %d malformed OUI records", skipped)
    return table


def _table_from_text(text: str) -> Dict[str, str]:
    """Builds a vendor table from ``PREFIX:Organization`` lines."""
    table: Dict[str, str] = {}
    for line in text.splitlines():
        prefix, sep, name = line.partition(":")
        prefix = _clean_prefix(prefix) if sep else None
        if prefix and name.strip():
            table[prefix] = name.strip()
    return table


def load_vendor_table(oui_file: Path) -> Dict[str, str]:
    """Loads the OUI vendor table.

    Args:
        oui_file (Path): JSON record list or ``PREFIX:Organization`` text file.
            When it does not exist, the mac_vendor_lookup cache is used.

    Returns:
        Dict[str, str]: 6-hex-digit uppercase prefix -> organization name.
        Empty if nothing could be loaded.
    """
    if not oui_file.exists():
        cache_file = Path(BaseMacLookup.cache_path)
        logger.warning("OUI file not found: %s. Trying vendor cache %s.", oui_file, cache_file)
        oui_file = cache_file

    try:
        with oui_file.open("r", encoding="utf-8") as file:
            if oui_file.suffix == ".json":
                records = json.load(file)
                if not isinstance(records, list):
                    logger.warning("OUI file %s is not a list of records. Using empty table.", oui_file)
                    return {}
                table = _table_from_records(records)
            else:
                table = _table_from_text(file.read())
    except FileNotFoundError as err:
        logger.warning("OUI file not found: %s. Using empty table.", err)
        return {}
    except json.JSONDecodeError as err:
        logger.warning("Error decoding OUI data: %s. Using empty table.", err)
        return {}
    except (OSError, UnicodeDecodeError) as err:
        logger.warning("Error reading OUI file %s: %s. Using empty table.", oui_file, err)
        return {}

    logger.info("Loaded %d OUIs from %s", len(table), oui_file)
    return table
