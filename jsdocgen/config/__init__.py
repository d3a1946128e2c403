from .loader import load_config
from .models import CustomTag, GenerativeConfig, Language, RenderConfiguration

__all__ = [
    "CustomTag",
    "GenerativeConfig",
    "Language",
    "RenderConfiguration",
    "load_config",
]
