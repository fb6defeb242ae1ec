from django.apps import AppConfig


class PubsubAppConfig(AppConfig):
    name = "pubsub"
    verbose_name = "Pubsub"
    default_auto_field = "django.db.models.BigAutoField"
