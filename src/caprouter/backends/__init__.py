"""Execution backends for caprouter.

Every execution target is served by a backend implementing
``invoke(request_text) -> ExecutionResult``. ``build_backends`` creates the
LiteLLM and HTTP backends a configuration describes; inline handlers are
supplied by the caller as ``CallableBackend`` instances.
"""

from caprouter.backends.base import (
    BackendRegistry,
    ExecutionBackend,
    ExecutionResult,
    ExecutionStatus,
    Rewriter,
)
from caprouter.backends.http import HttpBackend
from caprouter.backends.litellm_backend import LiteLLMBackend
from caprouter.backends.local import CallableBackend
from caprouter.config.models import RouterConfig


def build_backends(config: RouterConfig) -> BackendRegistry:
    """Create backends for targets that declare a ``model`` or ``endpoint``.

    Targets sharing a backend id share one instance; the first target that
    declares the backend wins. The post-processing rewriter is created when
    ``post_processing.rewriter_model`` is set.

    Args:
        config: Routing configuration.

    Returns:
        A BackendRegistry with the configured backends.
    """
    backends: dict[str, ExecutionBackend] = {}
    for target in config.targets.values():
        if target.backend in backends:
            continue
        if target.model:
            backends[target.backend] = LiteLLMBackend(model=target.model)
        elif target.endpoint:
            backends[target.backend] = HttpBackend(target.endpoint)

    rewriters: dict[str, Rewriter] = {}
    post = config.post_processing
    if post.rewriter_model:
        rewriters[post.rewriter_backend] = LiteLLMBackend(model=post.rewriter_model)

    return BackendRegistry(backends, rewriters)


__all__ = [
    "BackendRegistry",
    "CallableBackend",
    "ExecutionBackend",
    "ExecutionResult",
    "ExecutionStatus",
    "HttpBackend",
    "LiteLLMBackend",
    "Rewriter",
    "build_backends",
]
