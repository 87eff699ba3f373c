"""
Configuration settings for the reportcards app.

These values can be overridden in Django settings by prefixing with REPORTCARDS_.
For example, to change the default summative maximum:
    REPORTCARDS_DEFAULT_SA_MAX_MARKS = 100

All configuration values are lazily loaded to avoid Django setup issues.
"""


def _get_setting(name, default):
    """Get a reportcards setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'REPORTCARDS_{name}', default)


_DEFAULTS = {
    # Report card template
    'DEFAULT_TEMPLATE_KEY': 'cbse_state',

    # Default maximum marks for new entries
    'DEFAULT_SA_MAX_MARKS': 80,
    'DEFAULT_CO_CURRICULAR_MAX_MARKS': 50,

    # Bulk operation settings
    'BULK_PUBLISH_CHUNK_SIZE': 200,

    # Display limits
    'AUDIT_LOG_DISPLAY_LIMIT': 50,

    # Export settings
    'EXCEL_HEADER_COLOR': '4F46E5',
}


class _ConfigProxy:
    """
    Lazy configuration proxy that loads settings only when accessed.
    This avoids Django setup issues during module import.
    """

    def __getattr__(self, name):
        if name in _DEFAULTS:
            return _get_setting(name, _DEFAULTS[name])
        raise AttributeError(f"Unknown config setting: {name}")


_config = _ConfigProxy()


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(_config, name)
