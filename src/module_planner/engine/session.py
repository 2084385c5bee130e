"""Per-character session registry.

Hands out exactly one CharacterBuildService per character id, so calls
against the same character are serialised by that service's lock while
different characters proceed independently.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from module_planner.engine.build_config import BuildConfig
from module_planner.engine.build_engine import CharacterBuildService
from module_planner.models.catalog import Catalog
from module_planner.models.character import Character
from module_planner.models.game_settings import GameSettings


class SessionRegistry:
    """Maps character ids to their build service.

    ``loader`` is asked for the character the first time an id is opened;
    returning None means the character does not exist.
    """

    __slots__ = ("catalog", "config", "settings", "_loader", "_sessions", "_lock")

    def __init__(
        self,
        catalog: Catalog,
        config: BuildConfig | None = None,
        settings: GameSettings | None = None,
        loader: Callable[[str], Character | None] | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or BuildConfig()
        self.settings = settings
        self._loader = loader
        self._sessions: dict[str, CharacterBuildService] = {}
        self._lock = threading.Lock()

    def open(self, character_id: str) -> CharacterBuildService | None:
        """Return the service for *character_id*, loading it on first use.

        The loader runs outside the registry lock; when two threads race to
        load the same id, the first service registered wins and the other
        load is discarded.
        """
        with self._lock:
            service = self._sessions.get(character_id)
        if service is not None or self._loader is None:
            return service

        character = self._loader(character_id)
        if character is None:
            return None
        loaded = CharacterBuildService(character, self.catalog, self.config, self.settings)
        with self._lock:
            return self._sessions.setdefault(character_id, loaded)

    def create(
        self,
        character_id: str,
        name: str = "Unnamed",
        race: str = "",
        attributes: dict[str, int] | None = None,
    ) -> CharacterBuildService:
        """Start a new character. Raises ValueError if the id is already open."""
        with self._lock:
            if character_id in self._sessions:
                raise ValueError(f"Character {character_id!r} already has a session")
            service = CharacterBuildService.new_character(
                self.catalog, name, race, attributes, self.config, self.settings
            )
            self._sessions[character_id] = service
            return service

    def close(self, character_id: str) -> Character | None:
        """Drop a session, returning a snapshot of its character."""
        with self._lock:
            service = self._sessions.pop(character_id, None)
        if service is None:
            return None
        return service.state

    def ids(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def __contains__(self, character_id: object) -> bool:
        with self._lock:
            return character_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
