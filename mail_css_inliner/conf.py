from django.conf import settings


DEFAULTS = {
    # Stylesheets applied to every outgoing HTML part, in order.
    "CSS_FILES": [],
    # Dotted path to the class that rewrites CSS into style attributes.
    "ENGINE": "mail_css_inliner.engines.PremailerEngine",
    "ENGINE_OPTIONS": {},
    # Charset used for HTML parts that do not declare one.
    "DEFAULT_CHARSET": "utf-8",
    # Backend that actually delivers mail for CssInliningEmailBackend.
    "EMAIL_BACKEND": "django.core.mail.backends.smtp.EmailBackend",
    "SEND_UNINLINED_ON_ERROR": False,
}


def get_setting(name):
    """
    Retrieve a setting from the MAIL_CSS_INLINER dict in Django settings,
    falling back to DEFAULTS if not provided.
    """
    user_settings = getattr(settings, "MAIL_CSS_INLINER", {})
    value = user_settings.get(name, DEFAULTS.get(name))

    # Merge engine options over the defaults so partial dicts work
    if name == "ENGINE_OPTIONS":
        return {**DEFAULTS["ENGINE_OPTIONS"], **(value or {})}

    if name == "CSS_FILES" and value is None:
        return []

    return value
