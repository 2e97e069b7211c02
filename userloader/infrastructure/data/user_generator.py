"""Generates fake user records to provision.

Names are drawn from fixed lists; every email gets a random 5-character
suffix because name combinations repeat quickly at load-test volumes.
Pass a seed for reproducible runs.
"""

import random
import string
from typing import Optional

from userloader.domain.models.common import UserRecord

FIRST_NAMES = [
    "Alice", "Bob", "Charlie", "Diana", "Ethan",
    "Fiona", "George", "Hannah", "Isaac", "Julia",
    "Liam", "Mia", "Noah", "Olivia", "Aiden",
    "Zara", "Elijah", "Sophia", "Lucas", "Amelia",
    "Mason", "Chloe", "Logan", "Ava", "James",
    "Emily", "Benjamin", "Grace", "Jack", "Lily",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones",
    "Garcia", "Miller", "Davis", "Rodriguez", "Martinez",
    "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson",
    "Thomas", "Taylor", "Moore", "Jackson", "Martin",
    "Lee", "Perez", "Thompson", "White", "Harris",
]
EMAIL_DOMAINS = ["example.com", "example.org", "example.net", "test.example"]
SUFFIX_LENGTH = 5
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


class FakeUserGenerator:
    """Builds UserRecords with unique-looking emails and a shared test password."""

    def __init__(self, password: str, seed: Optional[int] = None):
        self.password = password
        self._rng = random.Random(seed)

    def _suffix(self) -> str:
        return "".join(self._rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))

    def generate(self) -> UserRecord:
        first = self._rng.choice(FIRST_NAMES)
        last = self._rng.choice(LAST_NAMES)
        domain = self._rng.choice(EMAIL_DOMAINS)
        email = f"{first.lower()}.{last.lower()}.{self._suffix()}@{domain}"
        return UserRecord(
            email=email,
            password=self.password,
            fullname=f"{last}, {first}",
            nickname=first,
        )

    def for_email(self, email: str) -> UserRecord:
        """Rebuilds a record for a known email (re-running failed jobs)."""
        first = self._rng.choice(FIRST_NAMES)
        last = self._rng.choice(LAST_NAMES)
        return UserRecord(
            email=email,
            password=self.password,
            fullname=f"{last}, {first}",
            nickname=first,
        )
