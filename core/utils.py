"""Shared helpers for the bot's core modules.

Provides corruption-safe JSON persistence (atomic replace with a single
backup generation) and the short address / hash formatting used in log
lines.
"""

import json
import logging
import os
import random
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def safe_json_read(filepath: str) -> Optional[Dict[str, Any]]:
    """Read a JSON object, falling back to its ``.backup`` copy.

    Args:
        filepath: Path to the primary JSON file.

    Returns:
        The parsed object, or ``None`` when neither the file nor its
        backup exists or contains a JSON object.
    """
    for path in (filepath, f"{filepath}.backup"):
        if not os.path.exists(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable JSON file %s: %s", path, exc)
            continue
        if isinstance(data, dict):
            return data
        logger.warning("Ignoring %s: top-level value is not an object", path)
    return None


def safe_json_write(filepath: str, data: Dict[str, Any]) -> bool:
    """Atomically write *data* as pretty-printed JSON.

    The current file (if any) is kept as ``<file>.backup``; the new
    content goes to a temporary file that is re-read before it replaces
    the target.

    Args:
        filepath: Destination path.
        data: JSON-serialisable mapping.

    Returns:
        ``True`` on success, ``False`` if the write failed (the failure
        is logged).
    """
    temp_file = filepath + ".tmp"
    try:
        dirpath = os.path.dirname(filepath)
        if dirpath:
            os.makedirs(dirpath, exist_ok=True)

        with open(temp_file, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)

        with open(temp_file, "r", encoding="utf-8") as fh:
            json.load(fh)

        if os.path.exists(filepath):
            os.replace(filepath, f"{filepath}.backup")
        os.replace(temp_file, filepath)
        return True
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Could not write JSON to %s: %s", filepath, exc)
        if os.path.exists(temp_file):
            os.remove(temp_file)
        return False


def short_address(address: Optional[str]) -> str:
    """Format ``0x1234...abcd`` for logs; ``N/A`` when empty."""
    if not address:
        return "N/A"
    return f"{address[:6]}...{address[-4:]}"


def short_hash(tx_hash: str) -> str:
    return f"{tx_hash[:6]}...{tx_hash[-4:]}"


def random_amount(
    minimum: float, maximum: float, rng: Optional[random.Random] = None,
) -> float:
    """Draw a uniform amount in ``[minimum, maximum]`` rounded to 4 places."""
    rng = rng or random
    return round(rng.uniform(minimum, maximum), 4)
