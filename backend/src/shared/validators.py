"""Validation for profile fields: email, Brazilian mobile numbers and CPF."""

import re
from difflib import get_close_matches
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# Domains most accounts use; typos against these get a suggestion
COMMON_EMAIL_DOMAINS = [
    "gmail.com",
    "hotmail.com",
    "outlook.com",
    "yahoo.com",
    "yahoo.com.br",
    "icloud.com",
    "live.com",
    "bol.com.br",
    "uol.com.br",
]


class ValidationError(ValueError):
    """A field failed validation; carries an optional corrected value."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion


def only_digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def suggest_email(email: str) -> Optional[str]:
    """Return the address with its domain corrected, or None if it looks fine."""
    if "@" not in email:
        return None
    local, domain = email.rsplit("@", 1)
    domain = domain.lower()
    if domain in COMMON_EMAIL_DOMAINS:
        return None
    matches = get_close_matches(domain, COMMON_EMAIL_DOMAINS, n=1, cutoff=0.75)
    if matches:
        return f"{local}@{matches[0]}"
    return None


def validate_email(email: Optional[str]) -> str:
    """
    Validate email format and catch domain typos.

    Returns:
        Lowercase email address

    Raises:
        ValidationError: If the format is invalid or the domain looks mistyped
    """
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("E-mail inválido.")

    suggestion = suggest_email(email)
    if suggestion:
        raise ValidationError(f"Você quis dizer {suggestion}?", suggestion=suggestion)
    return email


def format_phone(value: Optional[str]) -> str:
    """Mask a mobile number as '(11) 91234-5678' while it is being typed."""
    v = only_digits(value)[:11]
    if len(v) > 7:
        return f"({v[:2]}) {v[2:7]}-{v[7:]}"
    if len(v) > 2:
        return f"({v[:2]}) {v[2:]}"
    return v


def validate_phone(phone: Optional[str]) -> str:
    """
    Validate a Brazilian mobile number with area code (DDD).

    Returns:
        The masked number

    Raises:
        ValidationError: If it does not have 11 digits
    """
    digits = only_digits(phone)
    if len(digits) != 11 or digits[2] != "9":
        raise ValidationError("Digite um celular válido com DDD.")
    return format_phone(digits)


def format_cpf(value: Optional[str]) -> str:
    """Mask a CPF as '123.456.789-09' while it is being typed."""
    v = only_digits(value)[:11]
    if len(v) > 9:
        return f"{v[:3]}.{v[3:6]}.{v[6:9]}-{v[9:]}"
    if len(v) > 6:
        return f"{v[:3]}.{v[3:6]}.{v[6:]}"
    if len(v) > 3:
        return f"{v[:3]}.{v[3:]}"
    return v


def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder == 10 else remainder


def validate_cpf(cpf: Optional[str]) -> str:
    """
    Validate a CPF by its two check digits.

    Returns:
        The masked CPF

    Raises:
        ValidationError: If the number is malformed
    """
    digits = only_digits(cpf)
    if len(digits) != 11 or digits == digits[0] * 11:
        raise ValidationError("Digite um CPF válido.")
    if _cpf_check_digit(digits[:9]) != int(digits[9]) or _cpf_check_digit(digits[:10]) != int(digits[10]):
        raise ValidationError("Digite um CPF válido.")
    return format_cpf(digits)
