from django.apps import AppConfig


class CartsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.carts"
    label = "carts"
    verbose_name = "Carts"

    def ready(self):
        # Registers the login/logout receivers.
        from . import signals  # noqa: F401
