"""Base classes for persistence backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from letterpress.core.models import SenderProfile, TemplateFile, ViewState, ViewStatePatch

T = TypeVar("T")


@dataclass(frozen=True)
class BackendResult(Generic[T]):
    """Outcome of one backend request: a value or an error message."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "BackendResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "BackendResult[T]":
        return cls(error=error or "Unknown backend error")

    def unwrap_or(self, default: T) -> T:
        """Return the value, or ``default`` when the request failed."""
        if not self.ok or self.value is None:
            return default
        return self.value


class PersistenceBackend(ABC):
    """Abstract base for the store behind the composer.

    Every operation is asynchronous and reports failure through
    :class:`BackendResult` rather than raising.
    """

    @abstractmethod
    async def load_favourites(self) -> BackendResult[Any]:
        """Load favourites in whatever shape they were persisted.

        Returns:
            BackendResult[Any]: A list of names, a legacy name->flag mapping,
            or anything else (treated as empty by the reconciler).
        """

    @abstractmethod
    async def save_favourites(self, favourites: List[str]) -> BackendResult[None]:
        """Persist favourites in canonical list form."""

    @abstractmethod
    async def load_view_state(self) -> BackendResult[ViewState]:
        """Load the last-selected values."""

    @abstractmethod
    async def update_view_state(self, patch: ViewStatePatch) -> BackendResult[None]:
        """Merge ``patch`` into the stored view state.

        Args:
            patch (ViewStatePatch): Field name to value; missing keys are left
                unchanged, ``None`` clears a field.
        """

    @abstractmethod
    async def clear_view_state(self) -> BackendResult[None]:
        """Forget all last-selected values."""

    @abstractmethod
    async def resolve_image(self, ref: str) -> BackendResult[str]:
        """Resolve an image reference to base64-encoded bytes."""

    @abstractmethod
    async def load_salutations(self) -> BackendResult[List[str]]:
        """Load the list of openings."""

    @abstractmethod
    async def load_valedictions(self) -> BackendResult[List[str]]:
        """Load the list of closings."""

    @abstractmethod
    async def load_profile_names(self) -> BackendResult[List[str]]:
        """List the names of stored sender profiles."""

    @abstractmethod
    async def load_profile(self, name: str) -> BackendResult[SenderProfile]:
        """Load one sender profile by name."""

    @abstractmethod
    async def load_locations(self) -> BackendResult[Dict[str, str]]:
        """Load the location name to address mapping."""

    @abstractmethod
    async def load_templates(self) -> BackendResult[List[TemplateFile]]:
        """Load all body templates."""

    @abstractmethod
    async def save_template(self, name: str, content: str) -> BackendResult[None]:
        """Write a body template."""
