from school_authz.api.deps import (
    get_actor, install_exception_handlers, require, require_any, require_capability, require_instance,
)
from school_authz.api.middleware import CorrelationIdMiddleware

__all__ = [
    "get_actor", "install_exception_handlers", "require", "require_any",
    "require_capability", "require_instance", "CorrelationIdMiddleware",
]
