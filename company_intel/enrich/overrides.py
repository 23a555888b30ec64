"""Static ticker override tables loaded once from configuration."""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from company_intel.config import settings

logger = logging.getLogger(__name__)


class TickerOverrides:
    """Read-only domain -> ticker and normalized-name -> ticker tables."""

    def __init__(
        self,
        by_domain: Optional[Mapping[str, str]] = None,
        by_name: Optional[Mapping[str, str]] = None,
    ):
        self.by_domain = MappingProxyType(
            {k.lower().strip(): v.upper().strip() for k, v in (by_domain or {}).items()}
        )
        self.by_name = MappingProxyType(
            {k.strip(): v.upper().strip() for k, v in (by_name or {}).items()}
        )

    def __bool__(self) -> bool:
        return bool(self.by_domain or self.by_name)

    def __repr__(self) -> str:
        return f"TickerOverrides(domains={len(self.by_domain)}, names={len(self.by_name)})"

    @classmethod
    def empty(cls) -> "TickerOverrides":
        return cls()


def _read_table(path: Path) -> dict[str, str]:
    """Read one JSON object of string -> string; a missing file is an empty table."""
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable override file {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring override file {path}: expected a JSON object")
        return {}

    return {str(k): str(v) for k, v in data.items() if k and v}


def load_ticker_overrides(
    domain_path: Optional[Path] = None,
    name_path: Optional[Path] = None,
) -> TickerOverrides:
    """Load override tables from the configured JSON files."""
    overrides = TickerOverrides(
        by_domain=_read_table(domain_path or settings.domain_overrides_path),
        by_name=_read_table(name_path or settings.name_overrides_path),
    )
    if overrides:
        logger.info(f"Loaded ticker overrides: {overrides!r}")
    return overrides
