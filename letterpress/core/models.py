"""Domain models for composition inputs and outputs"""

import mimetypes
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ViewStatePatch = Dict[str, Optional[str]]

DEFAULT_IMAGE_MIME = "image/png"


class Location(BaseModel):
    """Office location printed at the bottom of a signature."""

    name: str = ""
    address: str = ""


class SenderProfile(BaseModel):
    """Sender identity block.

    Field aliases match the keys stored in signature files, so a profile can
    be validated straight from disk and dumped back with ``by_alias=True``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    profile_name: str = Field(default="", alias="signature_name")
    display_name: str = Field(default="", alias="name")
    role: str = Field(default="", alias="position")
    department: str = ""
    organization: str = Field(default="", alias="company")
    location: Location = Field(default_factory=Location)
    image_ref: Optional[str] = Field(default=None, alias="image_filename")

    @field_validator("image_ref", mode="before")
    @classmethod
    def _blank_image_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("location", mode="before")
    @classmethod
    def _missing_location(cls, value):
        return value if value is not None else {}


class ImagePayload(BaseModel):
    """A resolved signature image, base64 encoded for embedding."""

    model_config = ConfigDict(frozen=True)

    data: str
    mime_type: str = DEFAULT_IMAGE_MIME

    @classmethod
    def for_filename(cls, filename: str, data: str) -> "ImagePayload":
        mime_type, _ = mimetypes.guess_type(filename)
        if not mime_type or not mime_type.startswith("image/"):
            mime_type = DEFAULT_IMAGE_MIME
        return cls(data=data, mime_type=mime_type)

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class ComposedDocument(BaseModel):
    """Paired rich and plain-text rendering of one input snapshot."""

    model_config = ConfigDict(frozen=True)

    html: str
    plain: str


class ViewState(BaseModel):
    """Last-selected values remembered between sessions."""

    signature_view_last_selected_signature: Optional[str] = None
    email_view_last_selected_signature: Optional[str] = None
    email_view_last_selected_salutation: Optional[str] = None
    email_view_last_selected_valediction: Optional[str] = None

    @classmethod
    def known_fields(cls) -> frozenset:
        return frozenset(cls.model_fields)

    def merged(self, patch: ViewStatePatch) -> "ViewState":
        """Return a copy with the known keys of ``patch`` applied.

        Keys absent from the patch are left unchanged; unknown keys are ignored
        and non-string values clear the field.
        """
        updates = {
            key: value if isinstance(value, str) else None
            for key, value in patch.items()
            if key in self.known_fields()
        }
        return self.model_copy(update=updates)


class TemplateFile(BaseModel):
    """A stored body template."""

    name: str
    content: str = ""
    last_modified: str = ""
