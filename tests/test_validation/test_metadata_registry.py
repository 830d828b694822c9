"""
Tests for the validation metadata registry.
"""

from model_translator.settings import ValidationOptions
from model_translator.validation import metadata
from model_translator.validation.constraints import Constraint
from model_translator.validation.metadata import (
    ClassValidationMetadata,
    MetadataRegistry,
    PropertyValidationMetadata,
)


class Parent:
    pass


class Child(Parent):
    pass


class GrandChild(Child):
    pass


def parent_registry() -> MetadataRegistry:
    registry = MetadataRegistry()
    meta = ClassValidationMetadata()
    meta.props["name"] = PropertyValidationMetadata(
        owner_class=Parent, rules=[lambda prev: prev.required()]
    )
    meta.add_id_prop("theID")
    registry.set_class_metadata(Parent, meta)
    return registry


class TestGetClassMetadata:
    """Tests for metadata lookup and inheritance."""

    def test_fresh_record(self):
        registry = MetadataRegistry()
        meta = registry.get_class_metadata(Parent)
        assert meta.props == {}
        assert meta.id_props == []
        assert not registry.has_own_metadata(Parent)

    def test_own_record_returned(self):
        registry = parent_registry()
        assert registry.get_class_metadata(Parent) is registry.get_class_metadata(Parent)

    def test_inherits_clone(self):
        """A subclass sees a copy of the nearest ancestor's record."""
        registry = parent_registry()
        inherited = registry.get_class_metadata(GrandChild)
        own = registry.get_class_metadata(Parent)
        assert inherited is not own
        assert list(inherited.props) == ["name"]
        assert inherited.id_props == ["theID"]

    def test_clone_is_independent(self):
        """Changing the inherited copy never changes the parent."""
        registry = parent_registry()
        inherited = registry.get_class_metadata(Child)
        inherited.props["name"].rules.append(lambda prev: prev.min(3))
        inherited.props["nickname"] = PropertyValidationMetadata(owner_class=Child)
        inherited.add_id_prop("tenant")
        registry.set_class_metadata(Child, inherited)

        parent = registry.get_class_metadata(Parent)
        assert list(parent.props) == ["name"]
        assert len(parent.props["name"].rules) == 1
        assert parent.id_props == ["theID"]

    def test_nearest_ancestor_wins(self):
        registry = parent_registry()
        child_meta = registry.get_class_metadata(Child)
        child_meta.props["nickname"] = PropertyValidationMetadata(owner_class=Child)
        registry.set_class_metadata(Child, child_meta)
        assert list(registry.get_class_metadata(GrandChild).props) == ["name", "nickname"]

    def test_delete(self):
        registry = parent_registry()
        registry.delete_class_metadata(Parent)
        registry.delete_class_metadata(Parent)
        assert not registry.has_own_metadata(Parent)
        assert registry.get_class_metadata(Child).props == {}


class TestPropertyMetadata:
    """Tests for property metadata helpers."""

    def test_extract_own_entry(self):
        registry = parent_registry()
        meta = registry.get_class_metadata(Parent)
        assert registry.extract_property_metadata(meta, "name", Parent) is meta.props["name"]

    def test_extract_inherited_gives_stub(self):
        """An entry declared by the parent is not reused by the subclass."""
        registry = parent_registry()
        meta = registry.get_class_metadata(Child)
        stub = registry.extract_property_metadata(meta, "name", Child)
        assert stub is not meta.props["name"]
        assert stub.owner_class is Child
        assert stub.rules == []
        assert stub.type_builder().kind == "string"

    def test_set_property_metadata(self):
        registry = MetadataRegistry()
        prop = PropertyValidationMetadata(owner_class=Parent, type_builder=Constraint.integer)
        registry.set_property_metadata(Parent, "age", prop)
        registry.set_property_metadata(Parent, "age", prop)
        meta = registry.get_class_metadata(Parent)
        assert list(meta.props) == ["age"]
        assert meta.props["age"] is prop

    def test_clone_keeps_options(self):
        meta = ClassValidationMetadata(options=ValidationOptions(abort_early=True))
        assert meta.clone().options.abort_early is True


class TestDeclaredMarker:
    """Annotation scanning is recorded once per class."""

    def test_mark_declared_once(self):
        registry = MetadataRegistry()
        assert registry.mark_declared(Parent) is True
        assert registry.mark_declared(Parent) is False
        assert registry.is_declared(Parent)
        assert not registry.is_declared(Child)


class TestModuleFunctions:
    """Module-level functions act on the shared registry."""

    def test_round_trip(self):
        class Local:
            pass

        meta = metadata.get_class_metadata(Local)
        metadata.set_property_metadata(
            Local, "name", PropertyValidationMetadata(owner_class=Local), meta
        )
        assert list(metadata.get_class_metadata(Local).props) == ["name"]
        extracted = metadata.extract_property_metadata(meta, "name", Local)
        assert extracted is meta.props["name"]
        metadata.delete_class_metadata(Local)
        assert not metadata.registry.has_own_metadata(Local)
