"""Composer session.

The presentation layer owns one :class:`ComposerSession`. It loads the
selectable fragments and the remembered selections, keeps the current inputs,
and recomputes the composed document on demand. Background writes (favourites,
last-selected values) go through the reconciler and the synchroniser.
"""

from typing import List, Optional

from letterpress.backend.base import PersistenceBackend
from letterpress.core.composer import compose
from letterpress.core.favourites import FavouritesReconciler, FavouritesSet, sort_templates
from letterpress.core.models import (
    ComposedDocument,
    ImagePayload,
    SenderProfile,
    TemplateFile,
    ViewState,
    ViewStatePatch,
)
from letterpress.core.view_state import ViewStateSynchronizer
from letterpress.notifications import NotificationVariant, Notifier, NullNotifier, Strings
from letterpress.utils.config import AppConfig
from letterpress.utils.errors import ErrorHandler, ImageResolutionError, SessionNotLoadedError
from letterpress.utils.logging import async_log_call, get_logger

logger = get_logger(__name__)

FALLBACK_OPENINGS = ["Hello", "Hi", "Good morning"]
FALLBACK_CLOSINGS = ["Thanks", "Sincerely", "Kind regards"]

OPENING_FIELD = "email_view_last_selected_salutation"
CLOSING_FIELD = "email_view_last_selected_valediction"
PROFILE_FIELD = "email_view_last_selected_signature"


class ComposerSession:
    """State of one composer view plus its persistence collaborators."""

    def __init__(
        self,
        backend: PersistenceBackend,
        notifier: Optional[Notifier] = None,
        config: Optional[AppConfig] = None,
    ):
        self.backend = backend
        self.notifier = notifier or NullNotifier()
        self.config = config or AppConfig()
        self.favourites = FavouritesReconciler(backend, self.notifier)
        self.synchronizer = ViewStateSynchronizer(
            backend, quiet_period_ms=self.config.sync.quiet_period_ms
        )

        self.openings: List[str] = []
        self.closings: List[str] = []
        self.profile_names: List[str] = []
        self.templates: List[TemplateFile] = []

        self.opening = ""
        self.closing = ""
        self.recipient_name = ""
        self.body = ""
        self.selected_template: Optional[str] = None
        self.profile_name = ""
        self.profile: Optional[SenderProfile] = None
        self.image: Optional[ImagePayload] = None

        self._loaded = False

    ## Loading

    @async_log_call
    async def load(self) -> None:
        """Fetch lists, favourites and remembered selections.

        Read failures fall back to defaults and never block composing.
        """
        openings = await self.backend.load_salutations()
        if openings.ok:
            self.openings = list(openings.value or [])
        else:
            logger.warning(f"Using fallback openings: {openings.error}")
            self.openings = list(FALLBACK_OPENINGS)

        closings = await self.backend.load_valedictions()
        if closings.ok:
            self.closings = list(closings.value or [])
        else:
            logger.warning(f"Using fallback closings: {closings.error}")
            self.closings = list(FALLBACK_CLOSINGS)

        names = await self.backend.load_profile_names()
        if not names.ok:
            logger.error(f"Failed to load signatures: {names.error}")
        self.profile_names = names.unwrap_or([])

        templates = await self.backend.load_templates()
        if not templates.ok:
            logger.error(f"Failed to load templates: {templates.error}")
        self.templates = templates.unwrap_or([])

        await self.favourites.load()

        view_state = await self.backend.load_view_state()
        if not view_state.ok:
            logger.error(f"Failed to load view state: {view_state.error}")
        state = view_state.unwrap_or(ViewState())

        self.opening = state.email_view_last_selected_salutation or (
            self.openings[0] if self.openings else ""
        )
        self.closing = state.email_view_last_selected_valediction or (
            self.closings[0] if self.closings else ""
        )
        self._loaded = True

        if state.email_view_last_selected_signature:
            await self._load_profile(state.email_view_last_selected_signature)

    def _require_loaded(self, operation: str) -> None:
        if not self._loaded:
            raise SessionNotLoadedError(
                f"Cannot {operation} before the session is loaded",
                details={"operation": operation},
            )

    async def _load_profile(self, name: str) -> None:
        self.profile_name = name
        self.profile = None
        self.image = None
        if not name:
            return

        result = await self.backend.load_profile(name)
        if not result.ok:
            logger.error(f"Failed to load signature file '{name}': {result.error}")
            return

        # A newer selection may have landed while this one was loading.
        if self.profile_name != name:
            return

        profile = result.value
        self.profile = profile
        if profile is not None and profile.image_ref:
            image = await self._resolve_image(profile.image_ref)
            if self.profile_name == name:
                self.image = image

    async def _resolve_image(self, ref: str) -> Optional[ImagePayload]:
        result = await self.backend.resolve_image(ref)
        if not result.ok or not result.value:
            ErrorHandler.handle(
                ImageResolutionError(result.error, details={"ref": ref}),
                context="Signature image unavailable",
                log_traceback=False,
            )
            return None
        return ImagePayload.for_filename(ref, result.value)

    ## Selections

    def _selection_patch(self) -> ViewStatePatch:
        return {
            OPENING_FIELD: self.opening or None,
            CLOSING_FIELD: self.closing or None,
            PROFILE_FIELD: self.profile_name or None,
        }

    def schedule_view_state_update(self, patch: Optional[ViewStatePatch] = None) -> None:
        """Schedule a debounced write; defaults to the current selections."""
        self.synchronizer.schedule(patch if patch is not None else self._selection_patch())

    def select_opening(self, opening: str) -> None:
        self.opening = opening or ""
        self.schedule_view_state_update()

    def select_closing(self, closing: str) -> None:
        self.closing = closing or ""
        self.schedule_view_state_update()

    async def select_profile(self, name: str) -> None:
        self._require_loaded("select a signature")
        self.profile_name = name or ""
        self.schedule_view_state_update()
        await self._load_profile(self.profile_name)

    def set_recipient(self, name: str) -> None:
        self.recipient_name = name or ""

    def set_body(self, body: str) -> None:
        self.body = body or ""

    def select_template(self, name: str) -> Optional[TemplateFile]:
        """Load a template's content into the body editor."""
        for template in self.templates:
            if template.name == name:
                self.selected_template = template.name
                self.body = template.content
                return template
        logger.warning(f"Template '{name}' not found")
        return None

    async def save_template(self) -> bool:
        """Write the edited body back to the selected template."""
        if not self.selected_template:
            return False

        result = await self.backend.save_template(self.selected_template, self.body)
        if not result.ok:
            logger.error(f"Failed to save template: {result.error}")
            self.notifier.notify(Strings.TEMPLATE_NOT_SAVED, NotificationVariant.DANGER)
            return False

        self.templates = [
            template.model_copy(update={"content": self.body})
            if template.name == self.selected_template
            else template
            for template in self.templates
        ]
        self.notifier.notify(Strings.SAVED_CHANGES, NotificationVariant.SUCCESS)
        return True

    async def clear_view_state(self) -> bool:
        self.synchronizer.cancel()
        result = await self.backend.clear_view_state()
        if not result.ok:
            logger.error(f"Failed to clear cache: {result.error}")
            return False
        self.notifier.notify(Strings.CACHE_CLEARED, NotificationVariant.SUCCESS)
        return True

    ## Favourites

    def toggle_favourite(self, item_id: str) -> FavouritesSet:
        self._require_loaded("toggle a favourite")
        return self.favourites.toggle(item_id)

    def is_favourite(self, item_id: str) -> bool:
        return self.favourites.is_favourite(item_id)

    def visible_templates(self, query: str = "") -> List[TemplateFile]:
        return sort_templates(self.templates, self.favourites.items, query)

    ## Output

    def compose(self) -> ComposedDocument:
        """Render the current inputs."""
        self._require_loaded("compose")
        return compose(
            opening=self.opening,
            recipient_name=self.recipient_name,
            body=self.body,
            closing=self.closing,
            profile=self.profile,
            resolved_image=self.image,
            config=self.config.composer,
        )

    async def aclose(self) -> None:
        """Flush pending view state and wait for background writes."""
        await self.synchronizer.aclose()
        await self.favourites.wait_pending()
        logger.debug(f"Session closed after {self.synchronizer.writes_issued} view state writes")
