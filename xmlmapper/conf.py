from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

_originals = {}

# -- streaming

# Whether tokenizer errors abort the parse. By default, the error is logged
# and the builder keeps applying the events that follow it.
XMLMAPPER_ABORT_ON_ERROR = getattr(settings, "XMLMAPPER_ABORT_ON_ERROR", False)

# The number of bytes that the file and network readers deliver per chunk.
XMLMAPPER_CHUNK_SIZE = getattr(settings, "XMLMAPPER_CHUNK_SIZE", 64 * 1024)

# Timeout in seconds for opening and reading network feeds.
XMLMAPPER_NETWORK_TIMEOUT = getattr(settings, "XMLMAPPER_NETWORK_TIMEOUT", 30)

# -- security

# Whether documents with a <!DOCTYPE> are rejected. Entity declarations and
# external references are always refused, but old RSS 0.91 feeds still include a DTD.
XMLMAPPER_FORBID_DTD = getattr(settings, "XMLMAPPER_FORBID_DTD", False)

# -- decoding

# How many parsed key expressions (e.g. "enclosure@url") are remembered.
XMLMAPPER_KEY_CACHE_SIZE = getattr(settings, "XMLMAPPER_KEY_CACHE_SIZE", 500)


@receiver(setting_changed)
def _on_settings_change(setting, value, enter, **kwargs):
    if not setting.startswith("XMLMAPPER_"):
        return

    conf_module = globals()
    if value is None and not enter:
        # override_settings().disable() returns what the django settings module had.
        # Revert to our defaults here instead.
        value = _originals.get(setting)
    else:
        # Track defaults of this file for reverting to them
        _originals.setdefault(setting, conf_module[setting])

    conf_module[setting] = value
