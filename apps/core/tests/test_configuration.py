import runpy

import pytest
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

SETTINGS_PATH = settings.BASE_DIR / 'backend' / 'settings.py'


class TestAdminNotificationEmails:

    def test_missing_variable_refuses_to_start(self, monkeypatch):
        monkeypatch.delenv('ADMIN_NOTIFICATION_EMAILS', raising=False)

        with pytest.raises(ImproperlyConfigured):
            runpy.run_path(str(SETTINGS_PATH))

    def test_empty_list_refuses_to_start(self, monkeypatch):
        monkeypatch.setenv('ADMIN_NOTIFICATION_EMAILS', '')

        with pytest.raises(ImproperlyConfigured, match='at least one address'):
            runpy.run_path(str(SETTINGS_PATH))

    def test_comma_separated_inboxes(self, monkeypatch):
        monkeypatch.setenv('ADMIN_NOTIFICATION_EMAILS', 'ops@jingally.test,desk@jingally.test')

        loaded = runpy.run_path(str(SETTINGS_PATH))

        assert loaded['ADMIN_NOTIFICATION_EMAILS'] == ['ops@jingally.test', 'desk@jingally.test']
