import django
from django.conf import settings
import pytest

from mail_css_inliner.inliner import get_inliner


def pytest_configure():
    settings.configure(
        DEBUG=True,
        DATABASES={
            "default": {
                "ENGINE": "django.db.backends.sqlite3",
                "NAME": ":memory:",
            }
        },
        INSTALLED_APPS=[
            "django.contrib.contenttypes",
            "mail_css_inliner",
        ],
        DEFAULT_CHARSET="utf-8",
        DEFAULT_FROM_EMAIL="support@example.com",
        EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
        MAIL_CSS_INLINER={
            "CSS_FILES": [],
            "EMAIL_BACKEND": "django.core.mail.backends.locmem.EmailBackend",
            "SEND_UNINLINED_ON_ERROR": False,
        },
        SECRET_KEY="test-secret-key-not-for-production",
    )
    django.setup()


@pytest.fixture(autouse=True)
def fresh_inliner():
    get_inliner.cache_clear()
    yield
    get_inliner.cache_clear()


@pytest.fixture
def stylesheet(tmp_path):
    """Write a CSS file under tmp_path and return its path."""

    def _write(css, name="style.css"):
        path = tmp_path / name
        path.write_text(css, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def inliner_settings(settings):
    """Replace MAIL_CSS_INLINER keys for the duration of a test."""

    def _update(**values):
        settings.MAIL_CSS_INLINER = {**settings.MAIL_CSS_INLINER, **values}

    return _update
