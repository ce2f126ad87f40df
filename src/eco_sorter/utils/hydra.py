"""Hydra ConfigStore registration for pluggable components."""

from __future__ import annotations

from typing import Any

from hydra.core.config_store import ConfigStore
from loguru import logger


def register(
    cls: type[Any] | None = None,
    *,
    group: str | None = None,
    name: str | None = None,
    **defaults: Any,
) -> type[Any] | Any:
    """Decorator exposing a class as a selectable Hydra config option.

    Stores a node ``{"_target_": "<module>.<Class>", **defaults}`` so that
    ``store=sqlite store.db_path=/tmp/x.db`` on the command line resolves to
    ``hydra.utils.instantiate(cfg.store)``.

    Arguments:
        cls: The class to register (when used without parentheses).
        group: ConfigStore group. Defaults to the parent package name,
            e.g. ``storage`` for ``eco_sorter.storage.sqlite``.
        name: Option name within the group. Defaults to the class name.
        **defaults: Constructor arguments baked into the node.
    """

    def _process_class(target_cls: type[Any]) -> type[Any]:
        node_group = group or target_cls.__module__.split(".")[-2]
        node_name = name or target_cls.__name__
        node = {"_target_": f"{target_cls.__module__}.{target_cls.__qualname__}"}
        node.update(defaults)

        logger.debug(f"Registering {target_cls.__name__} as '{node_group}/{node_name}'")
        ConfigStore.instance().store(group=node_group, name=node_name, node=node)
        return target_cls

    if cls is None:
        return _process_class
    return _process_class(cls)
