from django.apps import AppConfig


class MailCssInlinerConfig(AppConfig):
    name = "mail_css_inliner"
    verbose_name = "Mail CSS Inliner"

    def ready(self):
        import mail_css_inliner.handlers  # noqa: F401 - connects signal handlers
