"""
Contact-detail checks run before a reservation may be submitted.

Checks run in a fixed order and stop at the first failure, so the
customer always sees exactly one message:
1. email format
2. email confirmation matches
3. phone number valid under international numbering rules
4. name and address present
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import phonenumbers

from src.config import settings
from src.schemas.booking_schema import ContactForm, CustomerDetails

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

INVALID_EMAIL_MESSAGE = "Please enter a valid email address."
EMAIL_MISMATCH_MESSAGE = "Emails do not match."
INVALID_PHONE_MESSAGE = "Please enter a valid phone number (e.g., +41 79 123 45 67)."
MISSING_FIELDS_MESSAGE = "Please fill in all required fields."


@dataclass
class ValidationResult:
    """Outcome of validating a contact form."""
    accepted: bool
    reason: Optional[str] = None
    customer: Optional[CustomerDetails] = None


def normalize_phone(value: str, region: Optional[str] = None) -> Optional[str]:
    """Parse a phone number and return it in E.164 form, or None if invalid.

    Without a region the number must start with +country-code.

    Examples:
        >>> normalize_phone("+41 79 123 45 67")
        '+41791234567'
        >>> normalize_phone("079 123 45 67") is None
        True
    """
    raw = value.strip()
    if not raw:
        return None
    try:
        parsed = phonenumbers.parse(raw, region or None)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def validate_contact_details(form: ContactForm) -> ValidationResult:
    """Validate a contact form; on success the phone is returned in E.164 form."""
    if not form.email or not EMAIL_PATTERN.fullmatch(form.email):
        return _reject(INVALID_EMAIL_MESSAGE)

    if form.email != form.confirm_email:
        return _reject(EMAIL_MISMATCH_MESSAGE)

    phone = normalize_phone(form.phone, settings.contact.default_phone_region)
    if phone is None:
        return _reject(INVALID_PHONE_MESSAGE)

    if not form.name.strip() or not form.address.strip():
        return _reject(MISSING_FIELDS_MESSAGE)

    return ValidationResult(
        accepted=True,
        customer=CustomerDetails(
            name=form.name.strip(),
            normalized_phone=phone,
            email=form.email,
            address=form.address.strip(),
        ),
    )


def _reject(reason: str) -> ValidationResult:
    logger.debug("Contact details rejected: %s", reason)
    return ValidationResult(accepted=False, reason=reason)
