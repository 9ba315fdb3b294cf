"""JSON file backend.

Stores everything under one data root, laid out as::

    <root>/data/cache.json          last-selected values
    <root>/data/favourites.json     favourite template names
    <root>/data/salutations.json    openings
    <root>/data/valedictions.json   closings
    <root>/data/locations.json      location name -> address
    <root>/Templates/<name>.txt     body templates
    <root>/Signatures/<name>.json   sender profiles
    <root>/Signatures/images/<f>    signature images
"""

import asyncio
import base64
import json
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import aiofiles
from pydantic import ValidationError

from letterpress.core.models import SenderProfile, TemplateFile, ViewState, ViewStatePatch
from letterpress.utils.logging import get_logger, log_event
from letterpress.utils.paths import (
    CACHE_FILE,
    DATA_SUBDIR,
    FAVOURITES_FILE,
    IMAGES_SUBDIR,
    LOCATIONS_FILE,
    SALUTATIONS_FILE,
    SIGNATURES_SUBDIR,
    TEMPLATES_SUBDIR,
    VALEDICTIONS_FILE,
)

from .base import BackendResult, PersistenceBackend

logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def sanitize_template_name(name: str) -> str:
    """Replace characters that are illegal in file names; blank -> ``Untitled``."""
    cleaned = (name or "").strip()
    if not cleaned:
        cleaned = "Untitled"
    return _UNSAFE_FILENAME_CHARS.sub("_", cleaned)


async def _read_text(path: Path) -> str:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return await f.read()


async def _read_json(path: Path) -> Any:
    return json.loads(await _read_text(path))


async def _write_text(path: Path, content: str) -> None:
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(content)


class JsonFileBackend(PersistenceBackend):
    """Persistence backend over plain JSON and text files."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.data_dir = self.root / DATA_SUBDIR
        self.templates_dir = self.root / TEMPLATES_SUBDIR
        self.signatures_dir = self.root / SIGNATURES_SUBDIR
        self.images_dir = self.signatures_dir / IMAGES_SUBDIR
        self._cache_lock = asyncio.Lock()

    def ensure_base_dirs(self) -> None:
        """Create the folder tree. Safe to call repeatedly."""
        for directory in (
            self.data_dir,
            self.templates_dir,
            self.signatures_dir,
            self.images_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _fail(operation: str, error: Exception) -> BackendResult:
        logger.warning(f"{operation} failed: {error}")
        return BackendResult.failure(f"{operation} failed: {error}")

    ## Favourites

    async def load_favourites(self) -> BackendResult[Any]:
        path = self.data_dir / FAVOURITES_FILE
        if not path.exists():
            return BackendResult.success([])

        try:
            return BackendResult.success(await _read_json(path))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return self._fail("load_favourites", e)

    async def save_favourites(self, favourites: List[str]) -> BackendResult[None]:
        try:
            self.ensure_base_dirs()
            await _write_text(
                self.data_dir / FAVOURITES_FILE,
                json.dumps(list(favourites), indent=2, ensure_ascii=False),
            )
        except OSError as e:
            return self._fail("save_favourites", e)

        return BackendResult.success()

    ## View state

    async def _read_view_state(self) -> ViewState:
        path = self.data_dir / CACHE_FILE
        if not path.exists():
            return ViewState()

        try:
            return ViewState.model_validate(await _read_json(path))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable view state in {path}: {e}")
            return ViewState()

    async def load_view_state(self) -> BackendResult[ViewState]:
        try:
            return BackendResult.success(await self._read_view_state())
        except OSError as e:
            return self._fail("load_view_state", e)

    async def update_view_state(self, patch: ViewStatePatch) -> BackendResult[None]:
        path = self.data_dir / CACHE_FILE
        tmp_path = path.with_name(f"{CACHE_FILE}.tmp")

        async with self._cache_lock:
            try:
                self.ensure_base_dirs()
                current = await self._read_view_state()
                updated = current.merged(patch)
                await _write_text(tmp_path, updated.model_dump_json(indent=2))
                await asyncio.to_thread(os.replace, tmp_path, path)
            except OSError as e:
                return self._fail("update_view_state", e)

        log_event("view_state_written", "View state updated", fields=sorted(patch))
        return BackendResult.success()

    async def clear_view_state(self) -> BackendResult[None]:
        path = self.data_dir / CACHE_FILE
        async with self._cache_lock:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                return self._fail("clear_view_state", e)

        return BackendResult.success()

    ## Images

    async def resolve_image(self, ref: str) -> BackendResult[str]:
        if not ref or Path(ref).name != ref:
            return BackendResult.failure(f"Invalid image reference '{ref}'")

        path = self.images_dir / ref
        if not path.is_file():
            return BackendResult.failure(f"Image file '{ref}' not found")

        try:
            async with aiofiles.open(path, "rb") as f:
                raw = await f.read()
        except OSError as e:
            return self._fail("resolve_image", e)

        return BackendResult.success(base64.b64encode(raw).decode("ascii"))

    ## Lists and profiles

    async def _load_string_list(self, filename: str) -> BackendResult[List[str]]:
        path = self.data_dir / filename
        if not path.exists():
            return BackendResult.success([])

        try:
            data = await _read_json(path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return self._fail(f"load {filename}", e)

        if not isinstance(data, list):
            return BackendResult.success([])

        return BackendResult.success([item for item in data if isinstance(item, str)])

    async def load_salutations(self) -> BackendResult[List[str]]:
        return await self._load_string_list(SALUTATIONS_FILE)

    async def load_valedictions(self) -> BackendResult[List[str]]:
        return await self._load_string_list(VALEDICTIONS_FILE)

    async def load_locations(self) -> BackendResult[Dict[str, str]]:
        path = self.data_dir / LOCATIONS_FILE
        if not path.exists():
            return BackendResult.success({})

        try:
            data = await _read_json(path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return self._fail("load_locations", e)

        if not isinstance(data, dict):
            return BackendResult.failure("Locations file is not an object")

        return BackendResult.success(
            {str(key): value for key, value in data.items() if isinstance(value, str)}
        )

    async def load_profile_names(self) -> BackendResult[List[str]]:
        if not self.signatures_dir.is_dir():
            return BackendResult.success([])

        try:
            names = sorted(path.stem for path in self.signatures_dir.glob("*.json"))
        except OSError as e:
            return self._fail("load_profile_names", e)

        return BackendResult.success(names)

    async def load_profile(self, name: str) -> BackendResult[SenderProfile]:
        path = self.signatures_dir / f"{name}.json"
        if not path.is_file():
            return BackendResult.failure(f"Signature '{name}' not found")

        try:
            return BackendResult.success(SenderProfile.model_validate(await _read_json(path)))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            return self._fail("load_profile", e)

    ## Templates

    async def load_templates(self) -> BackendResult[List[TemplateFile]]:
        if not self.templates_dir.is_dir():
            return BackendResult.success([])

        templates = []
        try:
            for path in sorted(self.templates_dir.glob("*.txt")):
                modified = datetime.fromtimestamp(path.stat().st_mtime)
                templates.append(
                    TemplateFile(
                        name=path.stem,
                        content=await _read_text(path),
                        last_modified=modified.strftime("%Y-%m-%d %H:%M:%S"),
                    )
                )
        except (OSError, UnicodeDecodeError) as e:
            return self._fail("load_templates", e)

        return BackendResult.success(templates)

    async def save_template(self, name: str, content: str) -> BackendResult[None]:
        path = self.templates_dir / f"{sanitize_template_name(name)}.txt"
        try:
            self.ensure_base_dirs()
            await _write_text(path, content)
        except OSError as e:
            return self._fail("save_template", e)

        return BackendResult.success()
