"""
Manual corrections applied to typed objects after they are assembled.

Each map variant has a static table of per-id overrides for known
source-data defects (wrong hotkey, miscounted icon variants).
"""

import dataclasses
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, TypeVar, cast

from ..errors import PatchError
from ..settings.types import MapVariant
from .models import PatchTable

T = TypeVar("T")

OG_PATCHES: PatchTable = MappingProxyType({
    # 4.25 - DI bonus mess order
    "n02H": {"hotkey": "Q"},
    # 4.25 - DI range
    "R09Q": {"icons_count": 3},
    # 4.25 - artifacts bonus spell
    "A0C5": {"hotkey": "C"},
})

OZ_PATCHES: PatchTable = MappingProxyType({
    # 1.54 - artifact level missing in the item table
    "I034": {"level": 2},
})

PATCHES_BY_VARIANT: Mapping[MapVariant, PatchTable] = MappingProxyType({
    MapVariant.OG: OG_PATCHES,
    MapVariant.OZ: OZ_PATCHES,
})


class PatchApplier:
    """Merges a patch table entry onto a freshly built object.

    List fields are concatenated (patch values after existing ones),
    dict fields are updated key by key, everything else is replaced.
    The input object is never mutated.
    """

    def __init__(self, patches: Optional[PatchTable] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.patches: PatchTable = patches if patches is not None else {}

    @classmethod
    def for_variant(cls, variant: MapVariant) -> "PatchApplier":
        return cls(PATCHES_BY_VARIANT.get(variant, {}))

    def apply(self, obj: T, entity_id: Optional[str] = None) -> T:
        """Return `obj` with the patch of its id merged in.

        Args:
            obj: A dataclass instance or a mapping with an 'id'
            entity_id: Id to look up instead of obj's own id

        Returns:
            A patched copy, or `obj` itself when no patch exists

        Raises:
            PatchError: if the patch names a field the object lacks
        """
        if entity_id is None:
            entity_id = self._get_id(obj)
        patch = self.patches.get(entity_id) if entity_id else None
        if not patch:
            return obj

        self.logger.debug(f"Applying patch to {entity_id}: {sorted(patch)}")

        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            names = {f.name for f in dataclasses.fields(obj)}
            unknown = set(patch) - names
            if unknown:
                raise PatchError(
                    f"Patch for {entity_id} names unknown fields: {sorted(unknown)}"
                )
            changes = {
                key: self._merge_value(getattr(obj, key), value)
                for key, value in patch.items()
            }
            return dataclasses.replace(obj, **changes)  # type: ignore[type-var]

        if isinstance(obj, Mapping):
            source = cast(Mapping[str, Any], obj)
            merged: Dict[str, Any] = dict(source)
            for key, value in patch.items():
                merged[key] = self._merge_value(source.get(key), value)
            return cast(T, merged)

        raise PatchError(f"Cannot patch object of type {type(obj).__name__}")

    @staticmethod
    def _get_id(obj: Any) -> Optional[str]:
        if isinstance(obj, Mapping):
            return cast(Mapping[str, Any], obj).get("id")
        return getattr(obj, "id", None)

    @staticmethod
    def _merge_value(current: Any, patch_value: Any) -> Any:
        if isinstance(current, list):
            extra = patch_value if isinstance(patch_value, list) else [patch_value]
            return list(cast(list[Any], current)) + list(cast(list[Any], extra))
        if isinstance(current, dict) and isinstance(patch_value, dict):
            result = dict(cast(dict[str, Any], current))
            result.update(cast(dict[str, Any], patch_value))
            return result
        return patch_value
