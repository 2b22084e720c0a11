from .loader import load_config
from .models import (
    CommandCheckConfig,
    FormatterConfig,
    GateConfig,
    SitegateConfig,
    SourceConfig,
    WatchConfig,
)

__all__ = [
    "CommandCheckConfig",
    "FormatterConfig",
    "GateConfig",
    "SitegateConfig",
    "SourceConfig",
    "WatchConfig",
    "load_config",
]
