import pytest

from seed_admin import seed_admin


def test_seed_admin_creates_admin(db):
    user = seed_admin(db, " Root@Example.com")

    assert user.email == "root@example.com"
    assert user.role == "admin"
    assert user.id.startswith("usr_")


def test_seed_admin_rejects_bad_email(db):
    with pytest.raises(ValueError):
        seed_admin(db, "not-an-email")


def test_seed_admin_rejects_duplicate(db):
    seed_admin(db, "root@example.com")
    with pytest.raises(ValueError):
        seed_admin(db, "root@example.com")
