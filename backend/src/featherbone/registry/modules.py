"""Startup loading of application function modules.

Business logic is registered from plain Python modules named in
configuration. Each module exposes ``register(registry)``; nothing is ever
evaluated from stored source.
"""

import importlib
import logging

from featherbone.registry.registry import FunctionRegistry

logger = logging.getLogger(__name__)


def load_function_modules(registry: FunctionRegistry, modules: list[str]) -> None:
    """Import each module and let it register its functions.

    Raises:
        ImportError: If a module cannot be imported
        TypeError: If a module has no callable ``register``
    """
    for module_name in modules:
        module = importlib.import_module(module_name)
        register = getattr(module, "register", None)
        if not callable(register):
            raise TypeError(f"Function module '{module_name}' has no register(registry)")
        register(registry)
        logger.info("Loaded function module %s", module_name)
