from django.apps import AppConfig
from django.core.signals import setting_changed


class StoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'store'
    verbose_name = "Record Store"

    def ready(self):
        """Rebuild the store when tests override its settings"""
        setting_changed.connect(_reset_on_store_setting, dispatch_uid='store_setting_changed')


def _reset_on_store_setting(setting, **kwargs):
    if setting in ('STORE_BACKEND', 'STORE_SEED_DEMO_DATA'):
        from .services import reset_store
        reset_store()
