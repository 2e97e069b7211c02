import re

from userloader.infrastructure.data.user_generator import FIRST_NAMES, LAST_NAMES, FakeUserGenerator

EMAIL_PATTERN = re.compile(r"^([a-z]+)\.([a-z]+)\.[a-z0-9]{5}@[a-z.]+$")


def test_generate_builds_consistent_record():
    user = FakeUserGenerator(password="Secret-123", seed=7).generate()

    match = EMAIL_PATTERN.match(user.email)
    assert match, user.email
    first, last = match.group(1), match.group(2)
    assert user.nickname.lower() == first
    assert user.fullname == f"{user.fullname.split(', ')[0]}, {user.nickname}"
    assert user.fullname.split(", ")[0].lower() == last
    assert user.nickname in FIRST_NAMES
    assert user.fullname.split(", ")[0] in LAST_NAMES
    assert user.password == "Secret-123"


def test_seed_makes_generation_reproducible():
    first = FakeUserGenerator("pw", seed=42)
    second = FakeUserGenerator("pw", seed=42)
    first_run = [first.generate() for _ in range(3)]
    second_run = [second.generate() for _ in range(3)]
    assert first_run == second_run


def test_emails_are_unique_across_a_run():
    generator = FakeUserGenerator("pw", seed=1)
    emails = {generator.generate().email for _ in range(200)}
    assert len(emails) == 200


def test_for_email_keeps_the_email():
    user = FakeUserGenerator("pw", seed=3).for_email("known@example.com")
    assert user.email == "known@example.com"
    assert user.password == "pw"
    assert user.nickname in FIRST_NAMES
