"""
Tests for the favourites set reconciler

Tests cover:
- Decoding both persisted shapes
- Symmetric toggling
- Background persistence and failure handling
- Template ordering
"""
import pytest

from letterpress.core.favourites import (
    FavouritesList,
    FavouritesMap,
    FavouritesReconciler,
    FavouritesUnknown,
    canonical_form,
    decode_favourites,
    normalize_favourites,
    sort_templates,
    toggle_favourite,
)
from letterpress.core.models import TemplateFile
from letterpress.notifications import NotificationVariant, Strings


class TestNormalize:
    """Tests for normalize_favourites"""

    def test_list_with_duplicates(self):
        result = normalize_favourites(["a", "b", "a"])
        assert result == {"a", "b"}
        assert len(result) == 2

    def test_legacy_map_keeps_truthy_keys(self):
        assert normalize_favourites({"a": True, "b": False}) == {"a"}

    def test_legacy_map_truthiness(self):
        assert normalize_favourites({"a": 1, "b": 0, "c": None, "d": "yes"}) == {"a", "d"}

    def test_non_string_list_items_skipped(self):
        assert normalize_favourites(["a", 1, None, {"b": True}]) == {"a"}

    @pytest.mark.parametrize("raw", [None, "a", 42, 3.5, True])
    def test_other_shapes_are_empty(self, raw):
        assert normalize_favourites(raw) == frozenset()

    def test_decode_is_tagged(self):
        assert isinstance(decode_favourites(["a"]), FavouritesList)
        assert isinstance(decode_favourites({"a": True}), FavouritesMap)
        assert isinstance(decode_favourites(None), FavouritesUnknown)


class TestToggle:
    """Tests for toggle_favourite"""

    def test_adds_missing(self):
        assert toggle_favourite({"a"}, "b") == {"a", "b"}

    def test_removes_present(self):
        assert toggle_favourite({"a", "b"}, "b") == {"a"}

    def test_returns_new_set(self):
        original = frozenset({"a"})
        toggle_favourite(original, "b")
        assert original == {"a"}

    @pytest.mark.parametrize("start", [set(), {"x"}, {"a", "b"}])
    def test_double_toggle_round_trips(self, start):
        assert toggle_favourite(toggle_favourite(start, "x"), "x") == frozenset(start)

    def test_canonical_form_is_list(self):
        assert canonical_form({"b", "a"}) == ["a", "b"]


class TestSortTemplates:
    """Tests for favourites-first template ordering"""

    def test_favourites_first_then_name(self):
        templates = [TemplateFile(name=n) for n in ["delta", "alpha", "charlie", "bravo"]]
        ordered = sort_templates(templates, {"charlie", "delta"})
        assert [t.name for t in ordered] == ["charlie", "delta", "alpha", "bravo"]

    def test_search_matches_name_or_content(self):
        templates = [
            TemplateFile(name="Invoice", content="Please pay"),
            TemplateFile(name="Hello", content="Your INVOICE is attached"),
            TemplateFile(name="Other", content="nothing"),
        ]
        ordered = sort_templates(templates, set(), "  invoice ")
        assert [t.name for t in ordered] == ["Hello", "Invoice"]


class TestReconciler:
    """Tests for FavouritesReconciler"""

    @pytest.mark.asyncio
    async def test_load_legacy_map(self, fake_backend):
        fake_backend.favourites_raw = {"a.txt": True, "b.txt": False}
        reconciler = FavouritesReconciler(fake_backend)
        assert await reconciler.load() == {"a.txt"}
        assert reconciler.is_favourite("a.txt")
        assert not reconciler.is_favourite("b.txt")

    @pytest.mark.asyncio
    async def test_load_failure_gives_empty_set(self, fake_backend):
        fake_backend.fail.add("load_favourites")
        reconciler = FavouritesReconciler(fake_backend)
        assert await reconciler.load() == frozenset()

    @pytest.mark.asyncio
    async def test_toggle_writes_array_form(self, fake_backend):
        fake_backend.favourites_raw = {"a": True}
        reconciler = FavouritesReconciler(fake_backend)
        await reconciler.load()

        reconciler.toggle("b")
        await reconciler.wait_pending()

        assert fake_backend.saved_favourites == [["a", "b"]]
        assert fake_backend.favourites_raw == ["a", "b"]

    @pytest.mark.asyncio
    async def test_toggle_does_not_wait_for_write(self, fake_backend):
        fake_backend.write_delay = 0.05
        reconciler = FavouritesReconciler(fake_backend)
        await reconciler.load()

        result = reconciler.toggle("a")

        assert result == {"a"}
        assert fake_backend.saved_favourites == []
        await reconciler.wait_pending()
        assert fake_backend.saved_favourites == [["a"]]

    @pytest.mark.asyncio
    async def test_failed_write_keeps_local_state_and_notifies(self, fake_backend, notifier):
        fake_backend.fail.add("save_favourites")
        reconciler = FavouritesReconciler(fake_backend, notifier)
        await reconciler.load()

        reconciler.toggle("a")
        await reconciler.wait_pending()

        assert reconciler.is_favourite("a")
        assert notifier.messages == [(Strings.FAVOURITES_NOT_SAVED, NotificationVariant.DANGER)]

    @pytest.mark.asyncio
    async def test_backend_exception_is_absorbed(self, fake_backend, notifier):
        async def explode(favourites):
            raise RuntimeError("boom")

        fake_backend.save_favourites = explode
        reconciler = FavouritesReconciler(fake_backend, notifier)
        reconciler.toggle("a")
        await reconciler.wait_pending()

        assert reconciler.items == {"a"}
        assert len(notifier.messages) == 1
