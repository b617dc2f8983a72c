from pathlib import Path

from django.conf import settings


class TestSettings:
    def test_locale_paths_exist(self):
        for path in settings.LOCALE_PATHS:
            assert Path(path).is_dir(), path

    def test_default_role_is_configured(self):
        assert settings.ORDER_DEFAULT_ROLE
