# lodging/utils/pii.py
import re

EMAIL = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*(@[A-Za-z0-9.-]+\.[A-Za-z]{2,})")
PHONE = re.compile(r"(?:\+?\d{1,3}[ -]?)?(?:\(?\d{2,4}\)?[ -]?)?\d{3,4}[ -]?(\d{4})")


def mask_email(email: str) -> str:
    """j***@example.com"""
    if not email:
        return email
    return EMAIL.sub(r"\1***\2", email)


def mask_phone(phone: str) -> str:
    """Keep the last four digits only."""
    if not phone:
        return phone
    return PHONE.sub(r"***-\1", phone)


def scrub(text: str) -> str:
    """Mask guest contact details before they reach a log line."""
    if not text:
        return text
    return mask_phone(mask_email(text))
