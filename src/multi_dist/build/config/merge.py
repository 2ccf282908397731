"""
Layer merge engine.

An accumulator is a pydantic model that a configuration layer gets applied
onto, field by field: a field set in the layer overwrites the accumulator's
value, an unset field leaves it alone.

Every accumulator declares the layer type it accepts and one disposition for
every field of that layer:

    APPLY           overwrite the accumulator field of the same name when set
    MERGE           apply the nested layer onto the nested accumulator
    Toggle(factory) `bool | layer` field; false disables, true enables with
                    defaults, a nested layer enables and merges
    IGNORE          the field belongs to another scope

The disposition table is checked when the accumulator class is created, so
adding a layer field without updating every merge site fails at import time
instead of being silently dropped.
"""
import copy
import logging
from typing import Any, Callable, ClassVar, Dict, Optional, Type

from pydantic import BaseModel

from .exceptions import ConfigContractError

logger = logging.getLogger(__name__)

APPLY = "apply"
MERGE = "merge"
IGNORE = "ignore"


class Toggle:
    """Disposition for fields that accept either a bool or a nested layer."""

    def __init__(self, factory: Callable[[], 'ApplyLayer']):
        self.factory = factory

    def apply(self, current: Optional['ApplyLayer'], value: Any) -> Optional['ApplyLayer']:
        if value is False:
            return None
        if current is None:
            current = self.factory()
        if value is not True:
            current.apply_layer(value)
        return current

    def __repr__(self) -> str:
        return f"Toggle({getattr(self.factory, '__name__', self.factory)})"


def apply_val(current: Any, new: Any) -> Any:
    """Last write wins for set values, otherwise keep the existing one."""
    return current if new is None else new


def check_dispositions(accumulator: Type['ApplyLayer']) -> None:
    """Verify an accumulator has exactly one disposition per layer field.

    Raises:
        ConfigContractError: If a layer field has no disposition, a disposition
            names no layer field, or a non-ignored field has nowhere to go.
    """
    layer_type = accumulator.layer_type
    if layer_type is None:
        return

    layer_fields = set(layer_type.model_fields)
    declared = set(accumulator.dispositions)
    missing = sorted(layer_fields - declared)
    unexpected = sorted(declared - layer_fields)
    if missing or unexpected:
        raise ConfigContractError(
            f"{accumulator.__name__} does not cover the fields of {layer_type.__name__}",
            accumulator=accumulator.__name__,
            missing=missing,
            unexpected=unexpected
        )

    for name, disposition in accumulator.dispositions.items():
        if disposition == IGNORE:
            continue
        if disposition not in (APPLY, MERGE) and not isinstance(disposition, Toggle):
            raise ConfigContractError(
                f"{accumulator.__name__} has an unknown disposition {disposition!r} for '{name}'",
                accumulator=accumulator.__name__
            )
        if name not in accumulator.model_fields:
            raise ConfigContractError(
                f"{accumulator.__name__} applies '{name}' but has no such field",
                accumulator=accumulator.__name__,
                unexpected=[name]
            )


class ApplyLayer(BaseModel):
    """Base class for merge accumulators."""
    layer_type: ClassVar[Optional[Type[BaseModel]]] = None
    dispositions: ClassVar[Dict[str, Any]] = {}

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        check_dispositions(cls)

    def apply_layer(self, layer: Optional[BaseModel]) -> None:
        """Apply a layer onto this accumulator in place. A None layer is a no-op."""
        if layer is None:
            return
        if type(layer) is not self.layer_type:
            raise TypeError(
                f"{type(self).__name__} accepts {self.layer_type.__name__}, "
                f"got {type(layer).__name__}"
            )

        for name, disposition in self.dispositions.items():
            value = getattr(layer, name)
            if disposition == IGNORE or value is None:
                continue
            if disposition == APPLY:
                setattr(self, name, copy.deepcopy(value))
            elif disposition == MERGE:
                getattr(self, name).apply_layer(value)
            else:
                setattr(self, name, disposition.apply(getattr(self, name), value))
            logger.debug(f"Applied {type(layer).__name__}.{name} onto {type(self).__name__}")
