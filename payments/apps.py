from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'payments'

    def ready(self):
        from .stripe_service import configure_stripe

        # A failed gateway call goes straight back to the caller.
        configure_stripe()
