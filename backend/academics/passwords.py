"""Password hashing and password policy checks.

Two policies exist: the registration policy (length, an uppercase letter,
a digit) and the stronger policy enforced when a password is changed,
which also requires a lowercase letter and a symbol and rejects passwords
known from public breach lists.
"""

import re
from typing import List

from passlib.context import CryptContext

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_LENGTH = 8

# Frequent entries of public breach corpora that would otherwise satisfy
# the strong policy. Compared case-insensitively.
COMPROMISED_PASSWORDS = frozenset(
    p.lower()
    for p in (
        "Password1!",
        "Password123!",
        "P@ssw0rd",
        "P@ssw0rd1",
        "P@ssword1",
        "Passw0rd!",
        "Qwerty123!",
        "Qwerty1!",
        "Welcome1!",
        "Welcome123!",
        "Admin123!",
        "Abc123!@#",
        "Aa123456!",
        "Letmein1!",
        "Iloveyou1!",
        "Summer2024!",
        "Winter2024!",
        "Changeme1!",
        "Football1!",
        "Monkey123!",
        "Dragon123!",
        "Test1234!",
        "Zaq12wsx!",
        "1qaz@WSX",
        "!QAZ2wsx",
    )
)


def hash_password(password: str) -> str:
    return PWD_CTX.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return PWD_CTX.verify(password, password_hash)


def is_compromised(password: str) -> bool:
    return password.lower() in COMPROMISED_PASSWORDS


def registration_problems(password: str) -> List[str]:
    """Return the registration-policy rules `password` breaks."""
    problems = []
    if len(password) < MIN_LENGTH:
        problems.append(f"The password must be at least {MIN_LENGTH} characters.")
    if not re.search(r"[A-Z]", password):
        problems.append("The password must contain at least one uppercase letter.")
    if not re.search(r"[0-9]", password):
        problems.append("The password must contain at least one number.")
    return problems


def strong_problems(password: str) -> List[str]:
    """Return the strong-policy rules `password` breaks.

    Used for password changes. Mirrors the registration rules and adds
    mixed case, a symbol and the breach-list check.
    """
    problems = []
    if len(password) < MIN_LENGTH:
        problems.append(f"The password must be at least {MIN_LENGTH} characters.")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password)):
        problems.append("The password must contain at least one uppercase and one lowercase letter.")
    if not re.search(r"[0-9]", password):
        problems.append("The password must contain at least one number.")
    if not re.search(r"[^A-Za-z0-9]", password):
        problems.append("The password must contain at least one symbol.")
    if not problems and is_compromised(password):
        problems.append("The given password has appeared in a data leak. Please choose a different password.")
    return problems
