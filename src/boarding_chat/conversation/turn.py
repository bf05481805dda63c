"""
Turn and part models for messages sent to the LLM.

A turn is one user-initiated exchange. It carries an ordered list of parts,
each either text or an inline binary attachment (mime type + base64 data).
"""

import base64
import binascii
import re
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict

from ..error_handling.exceptions import InvalidTurnError


_MIME_PATTERN = re.compile(r"^[\w.+-]+/[\w.+-]+$")


class TextPart(BaseModel):
    """A text fragment of a turn."""

    kind: Literal["text"] = "text"
    text: str

    model_config = ConfigDict(frozen=True)

    def has_content(self) -> bool:
        return bool(self.text.strip())

    def to_content(self) -> str:
        return self.text


class AttachmentPart(BaseModel):
    """An inline binary attachment, base64 encoded."""

    kind: Literal["attachment"] = "attachment"
    mime_type: str = Field(..., description="Mime type such as image/jpeg")
    data: str = Field(..., description="Base64 encoded payload")

    model_config = ConfigDict(frozen=True)

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Validate that the mime type looks like type/subtype."""
        v = v.strip().lower()
        if not _MIME_PATTERN.match(v):
            raise ValueError(f"Invalid mime type: {v!r}")
        return v

    @field_validator("data")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        """Validate that the payload is well-formed base64."""
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Attachment data is not valid base64") from e
        return v

    def has_content(self) -> bool:
        return bool(self.data)

    def decoded(self) -> bytes:
        """Return the raw attachment bytes."""
        return base64.b64decode(self.data)

    def to_content(self) -> dict:
        return {"mime_type": self.mime_type, "data": self.decoded()}


Part = Annotated[Union[TextPart, AttachmentPart], Field(discriminator="kind")]


class Turn(BaseModel):
    """
    One user-submitted exchange, composed of ordered parts.

    Attributes:
        parts: Text and attachment parts, in the order they are sent
    """

    parts: List[Part]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_has_content(self) -> "Turn":
        if not any(part.has_content() for part in self.parts):
            raise InvalidTurnError(part_count=len(self.parts))
        return self

    @classmethod
    def from_text(cls, text: str) -> "Turn":
        """Build a single-part text turn."""
        return cls(parts=[TextPart(text=text)])

    @property
    def text(self) -> str:
        """All text parts joined by blank lines."""
        return "\n\n".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def attachments(self) -> List[AttachmentPart]:
        return [p for p in self.parts if isinstance(p, AttachmentPart)]

    def to_contents(self) -> list:
        """Convert the parts to the provider's content list."""
        return [part.to_content() for part in self.parts]


class HistoryMessage(BaseModel):
    """A committed message in the conversation history."""

    role: Literal["user", "model"]
    parts: list

    model_config = ConfigDict(frozen=True)

    def to_content(self) -> dict:
        return {"role": self.role, "parts": list(self.parts)}
