from django.apps import AppConfig

class SocialGraphConfig(AppConfig):
    """Django app config for socialgraph; loads signal handlers on ready."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'socialgraph'

    def ready(self):
        """Import signal modules to register handlers."""
        import socialgraph.signals
