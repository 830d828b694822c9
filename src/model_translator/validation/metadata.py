"""
Validation Metadata Registry.

Property rules and class options declared on a model class end up here,
as a ``ClassValidationMetadata`` record keyed by the class itself.

Inheritance: a class without its own record sees a deep, independent clone
of its nearest ancestor's record, so declaring extra rules on a subclass
never changes what the parent validates.

Example:
    >>> meta = registry.get_class_metadata(Account)
    >>> meta.id_props.append("account_id")
    >>> registry.set_class_metadata(Account, meta)
"""

import logging
import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..settings import ValidationOptions
from .constraints import Constraint

logger = logging.getLogger(__name__)

Rule = Callable[[Constraint], Constraint]


@dataclass
class PropertyValidationMetadata:
    """
    Validation metadata of one property.

    Attributes:
        owner_class: Class that declared this metadata
        type_builder: Produces the base constraint for the property type
        rules: Constraint transformers applied left to right over the base
        raw_schema: Full custom constraint; overrides type_builder and rules
    """

    owner_class: Optional[type] = None
    type_builder: Callable[[], Constraint] = Constraint.string
    rules: List[Rule] = field(default_factory=list)
    raw_schema: Optional[Any] = None

    def clone(self) -> "PropertyValidationMetadata":
        return PropertyValidationMetadata(
            owner_class=self.owner_class,
            type_builder=self.type_builder,
            rules=list(self.rules),
            raw_schema=self.raw_schema,
        )


@dataclass
class ClassValidationMetadata:
    """
    Validation metadata of one class.

    Attributes:
        schema_map_id: Explicit identifier constraints (name -> constraint)
        schema_map_model: Explicit model constraints (name -> constraint)
        props: Per-property metadata in declaration order
        id_props: Names of identifier properties, in declaration order
        options: Default validation options for the class
    """

    schema_map_id: Dict[str, Any] = field(default_factory=dict)
    schema_map_model: Dict[str, Any] = field(default_factory=dict)
    props: Dict[str, PropertyValidationMetadata] = field(default_factory=dict)
    id_props: List[str] = field(default_factory=list)
    options: Optional[ValidationOptions] = None

    def add_id_prop(self, name: str) -> None:
        if name not in self.id_props:
            self.id_props.append(name)

    def clone(self) -> "ClassValidationMetadata":
        """Independent copy; constraints are immutable and shared."""
        return ClassValidationMetadata(
            schema_map_id=dict(self.schema_map_id),
            schema_map_model=dict(self.schema_map_model),
            props={name: prop.clone() for name, prop in self.props.items()},
            id_props=list(self.id_props),
            options=self.options,
        )


class MetadataRegistry:
    """
    Process-wide mapping from class to its validation metadata.

    Classes are held weakly: a class that goes away takes its metadata
    with it. All access is serialized by a re-entrant lock.
    """

    def __init__(self) -> None:
        self._store: "weakref.WeakKeyDictionary[type, ClassValidationMetadata]" = (
            weakref.WeakKeyDictionary()
        )
        self._declared: "weakref.WeakSet[type]" = weakref.WeakSet()
        self._lock = threading.RLock()

    def get_class_metadata(self, cls: type) -> ClassValidationMetadata:
        """
        Get the metadata that applies to ``cls``.

        Returns:
            The class's own record if it has one; else a clone of the
            nearest ancestor's record; else a new empty record.
        """
        with self._lock:
            own = self._store.get(cls)
            if own is not None:
                return own
            for ancestor in cls.__mro__[1:]:
                inherited = self._store.get(ancestor)
                if inherited is not None:
                    logger.debug(
                        f"Cloning validation metadata of {ancestor.__qualname__} "
                        f"for {cls.__qualname__}"
                    )
                    return inherited.clone()
            return ClassValidationMetadata()

    def has_own_metadata(self, cls: type) -> bool:
        with self._lock:
            return cls in self._store

    def set_class_metadata(self, cls: type, meta: ClassValidationMetadata) -> None:
        with self._lock:
            self._store[cls] = meta

    def delete_class_metadata(self, cls: type) -> None:
        with self._lock:
            self._store.pop(cls, None)

    def set_property_metadata(
        self,
        cls: type,
        prop_name: str,
        prop_meta: PropertyValidationMetadata,
        class_meta: Optional[ClassValidationMetadata] = None,
    ) -> None:
        """
        Store ``prop_meta`` for ``prop_name`` of ``cls``.

        Args:
            class_meta: Metadata already fetched for ``cls``, to avoid a
                second lookup (and a second ancestor clone).
        """
        with self._lock:
            if class_meta is None:
                class_meta = self.get_class_metadata(cls)
            class_meta.props[prop_name] = prop_meta
            self.set_class_metadata(cls, class_meta)

    @staticmethod
    def extract_property_metadata(
        class_meta: ClassValidationMetadata,
        prop_name: str,
        owner_class: type,
    ) -> PropertyValidationMetadata:
        """
        Get the property metadata declared by ``owner_class`` itself.

        An entry inherited from an ancestor is not returned; the caller
        gets a fresh string-typed stub owned by ``owner_class`` instead.
        """
        found = class_meta.props.get(prop_name)
        if found is not None and found.owner_class is owner_class:
            return found
        return PropertyValidationMetadata(owner_class=owner_class)

    def mark_declared(self, cls: type) -> bool:
        """Record that ``cls`` had its annotations scanned. False if already done."""
        with self._lock:
            if cls in self._declared:
                return False
            self._declared.add(cls)
            return True

    def is_declared(self, cls: type) -> bool:
        with self._lock:
            return cls in self._declared


registry = MetadataRegistry()


def get_class_metadata(cls: type) -> ClassValidationMetadata:
    return registry.get_class_metadata(cls)


def set_class_metadata(cls: type, meta: ClassValidationMetadata) -> None:
    registry.set_class_metadata(cls, meta)


def delete_class_metadata(cls: type) -> None:
    registry.delete_class_metadata(cls)


def set_property_metadata(
    cls: type,
    prop_name: str,
    prop_meta: PropertyValidationMetadata,
    class_meta: Optional[ClassValidationMetadata] = None,
) -> None:
    registry.set_property_metadata(cls, prop_name, prop_meta, class_meta)


def extract_property_metadata(
    class_meta: ClassValidationMetadata, prop_name: str, owner_class: type
) -> PropertyValidationMetadata:
    return registry.extract_property_metadata(class_meta, prop_name, owner_class)
