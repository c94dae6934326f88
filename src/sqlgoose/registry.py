"""Table registry: table name → declared :class:`~sqlgoose.model.Model`."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from .exceptions import RegistrationError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .model import Model

logger = logging.getLogger("sqlgoose.registry")

DuplicatePolicy = Literal["replace", "error"]


class TableRegistry:
    """
    Registry of models keyed by table name.

    Populated as models are declared and only read afterwards, so
    compilations may share it freely once declarations are done.  Entries
    are never removed individually.

    Usage::

        registry = TableRegistry()
        registry.register(customer_model)

        registry.get("customer")
    """

    def __init__(self, on_duplicate: DuplicatePolicy = "replace") -> None:
        if on_duplicate not in ("replace", "error"):
            raise ValueError(f"Unknown duplicate policy: {on_duplicate!r}")
        self._on_duplicate = on_duplicate
        self._models: dict[str, Model] = {}

    # -- registration --------------------------------------------------------

    def register(self, model: Model) -> None:
        """Register *model* under its table name."""
        name = model.table_name
        if name in self._models and self._models[name] is not model:
            if self._on_duplicate == "error":
                raise RegistrationError(f"table {name} is already registered")
            logger.warning("Replacing previously registered model for %s", name)
        self._models[name] = model

    # -- look-up -------------------------------------------------------------

    def get(self, name: str) -> Model | None:
        return self._models.get(name)

    def __getitem__(self, name: str) -> Model:
        return self._models[name]

    def has(self, name: str) -> bool:
        return name in self._models

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    @property
    def table_names(self) -> list[str]:
        return list(self._models)
