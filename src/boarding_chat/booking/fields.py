"""
Booking form field definitions.

The field names match the surrounding page's form. The label table is fixed
and its order is the order fields appear in the booking message.
"""

RABBIT_NAME = "rabbit-name"
GENDER = "gender"
AGE = "age"
BREED = "breed"
MEDICAL_CONDITION = "medical-condition"
TEMPERAMENT = "temperament"
FAVORITES = "favorites"
HABITS = "habits"
ROUTINE = "routine"
SPECIAL_REQUIREMENTS = "special-requirements"
STERILISED = "sterilised"
VACCINATED = "vaccinated"
FIRST_TIME = "first-time"
PREVIOUS_EXPERIENCE = "previous-experience"
CHECK_IN = "check-in"
CHECK_OUT = "check-out"
PET_PHOTO = "pet-photo"

FIELD_LABELS = {
    RABBIT_NAME: "Rabbit's Name",
    GENDER: "Gender",
    AGE: "Age",
    BREED: "Breed",
    MEDICAL_CONDITION: "Medical Condition",
    TEMPERAMENT: "Temperament",
    FAVORITES: "Favourite Foods & Toys",
    HABITS: "Habits",
    ROUTINE: "Daily Routine",
    SPECIAL_REQUIREMENTS: "Special Requirements",
    STERILISED: "Sterilised",
    VACCINATED: "Vaccinated",
    FIRST_TIME: "First Time Boarding",
    PREVIOUS_EXPERIENCE: "Previous Boarding Experience",
    CHECK_IN: "Check-in Date",
    CHECK_OUT: "Check-out Date",
    PET_PHOTO: "Pet Photo",
}

REQUIRED_FIELDS = (
    RABBIT_NAME,
    GENDER,
    AGE,
    BREED,
    STERILISED,
    VACCINATED,
    FIRST_TIME,
    CHECK_IN,
    CHECK_OUT,
)

# Text fields listed in the booking message; the photo travels as an attachment
TEXT_FIELDS = tuple(name for name in FIELD_LABELS if name != PET_PHOTO)


def label_for(field: str) -> str:
    """Human readable label for a field name."""
    return FIELD_LABELS.get(field, field.replace("-", " ").title())
