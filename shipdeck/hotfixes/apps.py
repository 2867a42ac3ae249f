from django.apps import AppConfig


class HotfixesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'shipdeck.hotfixes'
