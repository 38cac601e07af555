"""Per-profile macro table."""

from __future__ import annotations

from typing import Iterable, Optional

from errors import ProfileError
from logger import setup_logger
from models import KeyStroke, Macro
from profiles import ProfileCatalog

logger = setup_logger(__name__)


class MacroRegistry:
    """Maps macro names to immutable Macro records for one profile at a time.

    Registering an existing name replaces the previous macro (last write wins).
    ``reset`` swaps the whole table, so nothing from a previous profile stays
    reachable after a switch.
    """

    def __init__(self, catalog: ProfileCatalog) -> None:
        self._catalog = catalog
        self._macros: dict[str, Macro] = {}
        self._profile_id: Optional[str] = None

    @property
    def profile_id(self) -> Optional[str]:
        return self._profile_id

    def register(self, name: str, steps: Iterable[KeyStroke]) -> Macro:
        macro = Macro.build(name, steps)
        if name in self._macros:
            logger.debug("Macro '%s' replaced", name)
        self._macros[name] = macro
        return macro

    def lookup(self, name: str) -> Optional[Macro]:
        return self._macros.get(name)

    def reset(self, profile_id: str) -> None:
        profile = self._catalog.get(profile_id)
        if profile is None:
            raise ProfileError(f"unknown profile: {profile_id}")
        self._macros = {name: Macro.build(name, steps) for name, steps in profile.macros.items()}
        self._profile_id = profile_id
        logger.debug("Loaded %d macro(s) for profile %s", len(self._macros), profile_id)

    def names(self) -> list[str]:
        return list(self._macros)

    def __contains__(self, name: object) -> bool:
        return name in self._macros

    def __len__(self) -> int:
        return len(self._macros)
