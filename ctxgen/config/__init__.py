from .loader import load_config
from .models import (
    CompilerConfig,
    CtxgenConfig,
    GitConfig,
    HttpConfig,
)

__all__ = [
    "CompilerConfig",
    "CtxgenConfig",
    "GitConfig",
    "HttpConfig",
    "load_config",
]
