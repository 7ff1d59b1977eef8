from .app import create_app
from .state import state

__all__ = ["create_app", "state"]
