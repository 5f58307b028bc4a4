from django.apps import AppConfig


class ReferralsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.referrals"
    label = "referrals"

    def ready(self) -> None:
        from .handlers import register_handlers

        register_handlers()
