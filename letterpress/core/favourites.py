"""Favourites set reconciler.

Favourites have been persisted in two shapes over time: a list of template
names (current) and a mapping of name to a boolean flag (legacy). Reads accept
both; writes always use the list.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from letterpress.backend.base import BackendResult, PersistenceBackend
from letterpress.notifications import NotificationVariant, Notifier, NullNotifier, Strings
from letterpress.utils.errors import BackendReadError, BackendWriteError, ErrorHandler
from letterpress.utils.logging import get_logger, log_event

from .models import TemplateFile

logger = get_logger(__name__)

FavouritesSet = FrozenSet[str]


## Persisted shapes


@dataclass(frozen=True)
class FavouritesList:
    """Current shape: ``["a.txt", "b.txt"]``."""

    items: Tuple[Any, ...]


@dataclass(frozen=True)
class FavouritesMap:
    """Legacy shape: ``{"a.txt": true, "b.txt": false}``."""

    flags: Dict[str, Any]


@dataclass(frozen=True)
class FavouritesUnknown:
    """Anything else, including a missing value."""

    raw: Any


FavouritesShape = Union[FavouritesList, FavouritesMap, FavouritesUnknown]


def decode_favourites(raw: Any) -> FavouritesShape:
    if isinstance(raw, (list, tuple)):
        return FavouritesList(tuple(raw))
    if isinstance(raw, dict):
        return FavouritesMap(dict(raw))
    return FavouritesUnknown(raw)


def normalize_favourites(raw: Any) -> FavouritesSet:
    """Canonical set of favourite identifiers from either persisted shape."""
    shape = decode_favourites(raw)

    if isinstance(shape, FavouritesList):
        return frozenset(item for item in shape.items if isinstance(item, str))
    if isinstance(shape, FavouritesMap):
        return frozenset(str(key) for key, flag in shape.flags.items() if flag)
    return frozenset()


def toggle_favourite(favourites: Iterable[str], item_id: str) -> FavouritesSet:
    """Return a new set with ``item_id`` removed if present, added otherwise."""
    return frozenset(favourites) ^ {item_id}


def canonical_form(favourites: Iterable[str]) -> List[str]:
    """The list shape written back to the store."""
    return sorted(favourites)


def sort_templates(
    templates: Iterable[TemplateFile],
    favourites: Iterable[str],
    query: str = "",
) -> List[TemplateFile]:
    """Filter templates by name or content and list favourites first, then by name."""
    favourites = frozenset(favourites)
    needle = query.strip().lower()

    if needle:
        templates = [
            t for t in templates
            if needle in t.name.lower() or needle in t.content.lower()
        ]

    return sorted(templates, key=lambda t: (t.name not in favourites, t.name.lower(), t.name))


class FavouritesReconciler:
    """Holds the session's favourites and persists each change in the background.

    The in-memory set is authoritative for the session: a failed save is
    logged and reported, never rolled back.
    """

    def __init__(self, backend: PersistenceBackend, notifier: Optional[Notifier] = None):
        self.backend = backend
        self.notifier = notifier or NullNotifier()
        self._items: FavouritesSet = frozenset()
        self._pending: Set[asyncio.Task] = set()

    @property
    def items(self) -> FavouritesSet:
        return self._items

    def is_favourite(self, item_id: str) -> bool:
        return item_id in self._items

    async def load(self) -> FavouritesSet:
        """Replace the in-memory set with the stored one (empty on failure)."""
        result = await self.backend.load_favourites()
        if not result.ok:
            ErrorHandler.handle(
                BackendReadError(result.error, details={"operation": "load_favourites"}),
                context="Failed to load favourites",
                log_traceback=False,
            )
            self._items = frozenset()
        else:
            self._items = normalize_favourites(result.value)
            logger.debug(f"Loaded {len(self._items)} favourites")
        return self._items

    def toggle(self, item_id: str) -> FavouritesSet:
        """Toggle ``item_id`` and schedule a save of the new set.

        Must be called from a running event loop.
        """
        self._items = toggle_favourite(self._items, item_id)
        added = item_id in self._items
        log_event("favourite_toggled", f"Favourite toggled: {item_id}", item=item_id, added=added)

        task = asyncio.get_running_loop().create_task(self._persist(self._items))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return self._items

    async def _persist(self, snapshot: FavouritesSet) -> bool:
        try:
            result = await self.backend.save_favourites(canonical_form(snapshot))
        except Exception as e:
            logger.exception(f"Backend raised while saving favourites: {e}")
            result = BackendResult.failure(str(e))

        if result.ok:
            return True

        ErrorHandler.handle(
            BackendWriteError(result.error, details={"operation": "save_favourites"}),
            context="Failed to save favourites",
            log_traceback=False,
        )
        self.notifier.notify(Strings.FAVOURITES_NOT_SAVED, NotificationVariant.DANGER)
        return False

    async def wait_pending(self) -> None:
        """Wait for every save issued so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
