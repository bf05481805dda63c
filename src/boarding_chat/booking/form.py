"""
Booking form orchestration.

Validates a snapshot of the booking form and projects it into a turn: an
optional photo attachment followed by a text part listing every filled-in
field under its label.
"""

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .encoder import EncodedFile, UploadedFile, encode_file
from .fields import (
    CHECK_IN,
    CHECK_OUT,
    FIRST_TIME,
    PET_PHOTO,
    PREVIOUS_EXPERIENCE,
    RABBIT_NAME,
    REQUIRED_FIELDS,
    TEXT_FIELDS,
    label_for,
)
from ..conversation.turn import AttachmentPart, TextPart, Turn
from ..error_handling.exceptions import AttachmentError, InvalidStayDatesError, MissingFieldsError
from ..error_handling.logging_config import log_booking_event


BOOKING_HEADER = "New boarding booking request:"


class BookingFormSnapshot(BaseModel):
    """
    The booking form's values at submission time.

    Attributes:
        values: Field name to entered value
        photo: Optional pet photo
    """

    values: Dict[str, str] = Field(default_factory=dict)
    photo: Optional[UploadedFile] = None

    def value(self, field: str) -> str:
        """Entered value with surrounding whitespace removed ("" if absent)."""
        raw = self.values.get(field)
        return raw.strip() if raw else ""

    @classmethod
    def from_mapping(cls, data: Dict[str, object]) -> "BookingFormSnapshot":
        """
        Build a snapshot from a flat mapping of field names.

        The "pet-photo" key may hold a path or a mapping with
        filename/path/content_type.
        """
        values = {
            str(k): "" if v is None else str(v)
            for k, v in data.items()
            if k != PET_PHOTO
        }
        photo = data.get(PET_PHOTO)
        upload = None
        if isinstance(photo, dict):
            upload = UploadedFile(**photo)
        elif photo:
            upload = UploadedFile(filename=Path(str(photo)).name, path=Path(str(photo)))
        return cls(values=values, photo=upload)


class BookingForm:
    """
    Live state of the booking form on the page.

    Holds the current snapshot and the photo preview; reset after a
    successful submission.
    """

    def __init__(self):
        self.snapshot = BookingFormSnapshot()
        self.preview: Optional[EncodedFile] = None

    @property
    def preview_uri(self) -> Optional[str]:
        return self.preview.data_uri() if self.preview else None

    def set_preview(self, encoded: Optional[EncodedFile]) -> None:
        self.preview = encoded

    def reset(self) -> None:
        self.snapshot = BookingFormSnapshot()
        self.preview = None
        logger.debug("Booking form reset")


def check_required_fields(snapshot: BookingFormSnapshot) -> None:
    """
    Raises:
        MissingFieldsError: If any required field is empty
    """
    missing = [field for field in REQUIRED_FIELDS if not snapshot.value(field)]
    if missing:
        raise MissingFieldsError(missing, labels=[label_for(f) for f in missing])


def check_stay_dates(snapshot: BookingFormSnapshot) -> Tuple[date, date]:
    """
    Parse and order-check the stay dates.

    Returns:
        (check_in, check_out)

    Raises:
        InvalidStayDatesError: If a date is missing, unparseable, or
            check-out is not strictly after check-in
    """
    raw_in, raw_out = snapshot.value(CHECK_IN), snapshot.value(CHECK_OUT)
    if not raw_in or not raw_out:
        raise InvalidStayDatesError("missing")

    try:
        check_in = date.fromisoformat(raw_in)
        check_out = date.fromisoformat(raw_out)
    except ValueError as e:
        raise InvalidStayDatesError("unparseable", raw_check_in=raw_in, raw_check_out=raw_out) from e

    if check_out <= check_in:
        raise InvalidStayDatesError("order", check_in=check_in, check_out=check_out)
    return check_in, check_out


def listed_fields(snapshot: BookingFormSnapshot) -> List[Tuple[str, str]]:
    """
    Fields that go into the booking message, in label-table order.

    Empty fields are skipped, and previous experience is dropped when the
    rabbit is boarding for the first time.

    Returns:
        List of (label, value)
    """
    first_time = snapshot.value(FIRST_TIME).lower() == "yes"
    listed = []
    for field in TEXT_FIELDS:
        if field == PREVIOUS_EXPERIENCE and first_time:
            continue
        value = snapshot.value(field)
        if value:
            listed.append((label_for(field), value))
    return listed


def format_booking_text(snapshot: BookingFormSnapshot) -> str:
    """Build the booking message text."""
    lines = [BOOKING_HEADER]
    lines.extend(f"{label}: {value}" for label, value in listed_fields(snapshot))
    return "\n".join(lines)


class FormOrchestrator:
    """
    Validates booking submissions and turns them into turns.

    Args:
        max_attachment_bytes: Largest photo accepted
    """

    def __init__(self, max_attachment_bytes: Optional[int] = None):
        self.max_attachment_bytes = max_attachment_bytes

    async def submit(self, snapshot: BookingFormSnapshot) -> Turn:
        """
        Validate a snapshot and build its turn.

        Validation runs in order and stops at the first failure; nothing is
        sent on failure.

        Args:
            snapshot: Booking form values

        Returns:
            Turn with the photo (if any) before the booking text

        Raises:
            MissingFieldsError: If required fields are empty
            InvalidStayDatesError: If the stay dates are invalid
            AttachmentError: If the photo cannot be encoded
        """
        rabbit = snapshot.value(RABBIT_NAME) or None
        try:
            check_required_fields(snapshot)
            check_in, check_out = check_stay_dates(snapshot)
        except (MissingFieldsError, InvalidStayDatesError) as e:
            log_booking_event("REJECTED", rabbit, {"error": type(e).__name__, "field": e.field})
            raise

        parts: list = []
        if snapshot.photo is not None:
            encoded = await encode_file(snapshot.photo, self.max_attachment_bytes)
            try:
                parts.append(AttachmentPart(mime_type=encoded.mime_type, data=encoded.data))
            except ValidationError as e:
                raise AttachmentError(
                    f"Unusable attachment type {encoded.mime_type!r}",
                    filename=snapshot.photo.filename,
                    original_error=e,
                ) from e
        parts.append(TextPart(text=format_booking_text(snapshot)))

        log_booking_event(
            "SUBMITTED",
            rabbit,
            {
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "nights": (check_out - check_in).days,
                "photo": snapshot.photo is not None,
            },
        )
        return Turn(parts=parts)
