"""Load the predefined sector catalogue and install it for a user."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from tweetletter.models import Sector
from tweetletter.store import DigestStore

logger = logging.getLogger(__name__)


def load_catalog(path: Path) -> list[Sector]:
    """Parse ``sectors.yml`` and return its sectors (unowned, no ids).

    Each entry needs a ``name``; ``description`` and ``handles`` are optional.
    Handles may carry a leading ``@`` or be full profile URLs.
    """
    if not path.exists():
        logger.warning("Sector catalogue not found, skipping: %s", path)
        return []
    with open(path) as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    catalog: list[Sector] = []
    for entry in cfg.get("sectors", []) or []:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed sector entry %r in %s", entry, path)
            continue
        name = str(entry.get("name", "")).strip()
        if not name:
            logger.warning("Skipping unnamed sector entry in %s", path)
            continue
        catalog.append(
            Sector(
                name=name,
                description=entry.get("description", "") or "",
                handles=list(entry.get("handles", []) or []),
            )
        )
    logger.debug("Loaded %d catalogue sectors from %s", len(catalog), path)
    return catalog


def find_sector(catalog: list[Sector], name: str) -> Sector | None:
    """Case-insensitive lookup by sector name."""
    wanted = name.strip().lower()
    return next((s for s in catalog if s.name.lower() == wanted), None)


def install_sectors(
    store: DigestStore,
    user_id: int,
    catalog: list[Sector],
    names: list[str] | None = None,
) -> list[Sector]:
    """Copy catalogue sectors into *user_id*'s sectors and return the new records.

    With *names*, only those sectors are installed; unknown names are logged
    and skipped.
    """
    if names is None:
        chosen = list(catalog)
    else:
        chosen = []
        for name in names:
            sector = find_sector(catalog, name)
            if sector is None:
                logger.warning("No catalogue sector named %r", name)
                continue
            chosen.append(sector)

    created = [
        store.create_sector(sector.model_copy(update={"id": None, "user_id": user_id}))
        for sector in chosen
    ]
    logger.info("Installed %d sectors for user %d", len(created), user_id)
    return created
