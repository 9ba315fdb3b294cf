"""
Shared test fixtures and configuration for pytest
"""
import asyncio
import base64
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from letterpress.backend.base import BackendResult, PersistenceBackend
from letterpress.core.models import Location, SenderProfile, TemplateFile, ViewState
from letterpress.notifications import NotificationVariant
from letterpress.utils.config import AppConfig, SyncConfig

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


class FakeBackend(PersistenceBackend):
    """In-memory backend that records calls and can be told to fail."""

    def __init__(self):
        self.favourites_raw: Any = []
        self.saved_favourites: List[List[str]] = []
        self.view_state = ViewState()
        self.view_state_patches: List[Dict[str, Optional[str]]] = []
        self.images: Dict[str, str] = {}
        self.salutations: List[str] = ["Hello", "Hi"]
        self.valedictions: List[str] = ["Best", "Thanks"]
        self.profiles: Dict[str, SenderProfile] = {}
        self.locations: Dict[str, str] = {}
        self.templates: List[TemplateFile] = []
        self.saved_templates: Dict[str, str] = {}
        self.fail: set = set()
        self.write_delay = 0.0

    def _failed(self, operation: str) -> bool:
        return operation in self.fail

    async def load_favourites(self):
        if self._failed("load_favourites"):
            return BackendResult.failure("favourites unavailable")
        return BackendResult.success(self.favourites_raw)

    async def save_favourites(self, favourites):
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        self.saved_favourites.append(list(favourites))
        if self._failed("save_favourites"):
            return BackendResult.failure("disk full")
        self.favourites_raw = list(favourites)
        return BackendResult.success()

    async def load_view_state(self):
        if self._failed("load_view_state"):
            return BackendResult.failure("cache unavailable")
        return BackendResult.success(self.view_state)

    async def update_view_state(self, patch):
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        self.view_state_patches.append(dict(patch))
        if self._failed("update_view_state"):
            return BackendResult.failure("cache locked")
        self.view_state = self.view_state.merged(patch)
        return BackendResult.success()

    async def clear_view_state(self):
        if self._failed("clear_view_state"):
            return BackendResult.failure("cannot delete")
        self.view_state = ViewState()
        return BackendResult.success()

    async def resolve_image(self, ref):
        if self._failed("resolve_image") or ref not in self.images:
            return BackendResult.failure(f"Image file '{ref}' not found")
        return BackendResult.success(self.images[ref])

    async def load_salutations(self):
        if self._failed("load_salutations"):
            return BackendResult.failure("missing")
        return BackendResult.success(self.salutations)

    async def load_valedictions(self):
        if self._failed("load_valedictions"):
            return BackendResult.failure("missing")
        return BackendResult.success(self.valedictions)

    async def load_profile_names(self):
        if self._failed("load_profile_names"):
            return BackendResult.failure("missing")
        return BackendResult.success(sorted(self.profiles))

    async def load_profile(self, name):
        if self._failed("load_profile") or name not in self.profiles:
            return BackendResult.failure(f"Signature '{name}' not found")
        return BackendResult.success(self.profiles[name])

    async def load_locations(self):
        return BackendResult.success(self.locations)

    async def load_templates(self):
        if self._failed("load_templates"):
            return BackendResult.failure("missing")
        return BackendResult.success(self.templates)

    async def save_template(self, name, content):
        if self._failed("save_template"):
            return BackendResult.failure("read-only")
        self.saved_templates[name] = content
        return BackendResult.success()


class RecordingNotifier:
    """Notifier that keeps every message it is given."""

    def __init__(self):
        self.messages = []

    def notify(self, message, variant=NotificationVariant.INFO):
        self.messages.append((message, variant))


@pytest.fixture
def jane_profile():
    """Profile used by the end-to-end composition examples"""
    return SenderProfile(
        profile_name="Jane",
        display_name="Jane Doe",
        role="Engineer",
        department="Platform",
        organization="Acme",
        location=Location(name="HQ", address="1 Main St"),
    )


@pytest.fixture
def fake_backend(jane_profile):
    backend = FakeBackend()
    backend.profiles["Jane"] = jane_profile
    backend.profiles["Logo"] = jane_profile.model_copy(
        update={"profile_name": "Logo", "image_ref": "logo.png"}
    )
    backend.images["logo.png"] = base64.b64encode(PNG_BYTES).decode("ascii")
    backend.templates = [
        TemplateFile(name="welcome", content="Welcome aboard."),
        TemplateFile(name="update", content="Thanks for the update."),
    ]
    return backend


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fast_config():
    """Application config with a short quiet period for timing tests"""
    return AppConfig(sync=SyncConfig(quiet_period_ms=20))


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """A data directory laid out like the desktop application's"""
    root = tmp_path / "store"
    (root / "data").mkdir(parents=True)
    (root / "Templates").mkdir()
    (root / "Signatures" / "images").mkdir(parents=True)

    (root / "data" / "salutations.json").write_text(json.dumps(["Hello", "Hi", 3]))
    (root / "data" / "valedictions.json").write_text(json.dumps(["Best", "Cheers"]))
    (root / "data" / "locations.json").write_text(json.dumps({"HQ": "1 Main St"}))
    (root / "Templates" / "update.txt").write_text("Thanks for the update.")
    (root / "Templates" / "welcome.txt").write_text("Welcome aboard.")
    (root / "Signatures" / "Jane.json").write_text(
        json.dumps(
            {
                "signature_name": "Jane",
                "name": "Jane Doe",
                "position": "Engineer",
                "department": "Platform",
                "company": "Acme",
                "location": {"name": "HQ", "address": "1 Main St"},
                "image_filename": "logo.png",
            }
        )
    )
    (root / "Signatures" / "images" / "logo.png").write_bytes(PNG_BYTES)
    return root
