from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'buildstock.core'

    def ready(self):
        """Import signals when app is ready"""
        import buildstock.core.cache_signals  # noqa: F401
