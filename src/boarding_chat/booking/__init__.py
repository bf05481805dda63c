"""
Booking form package: field table, photo encoding and form orchestration.
"""

from .encoder import UploadedFile, EncodedFile, encode_file, encode_bytes
from .form import BookingForm, BookingFormSnapshot, FormOrchestrator
from .fields import FIELD_LABELS, REQUIRED_FIELDS

__all__ = [
    "UploadedFile",
    "EncodedFile",
    "encode_file",
    "encode_bytes",
    "BookingForm",
    "BookingFormSnapshot",
    "FormOrchestrator",
    "FIELD_LABELS",
    "REQUIRED_FIELDS",
]
