"""Unit tests for infergraph.registry.registry: TypeRegistry."""
from __future__ import annotations

import logging

import pytest

from infergraph.errors import DeclaredTypeError, TypeNotFoundError
from infergraph.model.types import (
    BUILTIN_SCALARS,
    FLOAT,
    INT,
    STRING,
    LinkType,
    ListRef,
    ListType,
    NamedRef,
    ObjectType,
)
from infergraph.registry.registry import TypeRegistry


# ===========================================================================
# Lifecycle
# ===========================================================================


class TestLifecycle:
    def test_new_registry_holds_builtin_scalars(self) -> None:
        registry = TypeRegistry()
        assert len(registry) == len(BUILTIN_SCALARS)
        assert registry.get_type("Date") is not None

    def test_reset_drops_everything_else(self) -> None:
        registry = TypeRegistry()
        registry.declare_object("Post")
        registry.unique_name("Meta", owner="Post.meta")
        registry.reset()
        assert "Post" not in registry
        assert registry.unique_name("Meta", owner="Page.meta") == "Meta"
        assert len(registry) == len(BUILTIN_SCALARS)

    def test_reset_keeps_declared_types(self) -> None:
        registry = TypeRegistry({"Author": {"bio": NamedRef("String")}})
        registry.reset()
        assert "Author" in registry.declared_types

    def test_declared_types_are_read_only(self) -> None:
        registry = TypeRegistry()
        with pytest.raises(TypeError):
            registry.declared_types["X"] = {}  # type: ignore[index]

    def test_rollback_restores_checkpoint(self) -> None:
        registry = TypeRegistry()
        post = registry.declare_object("Post")
        post.fields["title"] = STRING
        checkpoint = registry.checkpoint()

        post.fields["extra"] = INT
        post.sources["extra"] = "extra-key"
        registry.declare_object(registry.unique_name("PostMeta", owner="Post.meta"))
        registry.wrap_in_list(post)
        registry.rollback(checkpoint)

        assert registry.declare_object("Post") is post
        assert post.fields == {"title": STRING}
        assert post.sources == {}
        assert "PostMeta" not in registry
        assert "[Post]" not in registry
        assert registry.unique_name("PostMeta", owner="Page.meta") == "PostMeta"

    def test_owner_of(self) -> None:
        registry = TypeRegistry()
        registry.claim("Post", "Post")
        assert registry.owner_of("Post") == "Post"
        assert registry.owner_of("Page") is None

    def test_repr(self) -> None:
        assert "Boolean" in repr(TypeRegistry())


# ===========================================================================
# Registration and lookup
# ===========================================================================


class TestRegistration:
    def test_register_returns_node(self) -> None:
        registry = TypeRegistry()
        node = ObjectType("Post")
        assert registry.register_type("Post", node) is node
        assert registry.get_type("Post") is node

    def test_register_is_an_upsert(self) -> None:
        registry = TypeRegistry()
        registry.register_type("Post", ObjectType("Post"))
        newer = ObjectType("Post")
        registry.register_type("Post", newer)
        assert registry.get_type("Post") is newer

    def test_register_logs_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = TypeRegistry()
        with caplog.at_level(logging.DEBUG, logger="infergraph.registry.registry"):
            registry.register_type("Post", ObjectType("Post"))
        assert "Post" in caplog.text

    def test_require_type_raises_type_not_found(self) -> None:
        with pytest.raises(TypeNotFoundError) as excinfo:
            TypeRegistry().require_type("Nope")
        assert excinfo.value.type_name == "Nope"

    def test_type_not_found_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            TypeRegistry().require_type("Nope")

    def test_declare_object_keeps_identity(self) -> None:
        registry = TypeRegistry()
        assert registry.declare_object("Post") is registry.declare_object("Post")

    def test_declare_object_over_non_object_raises(self) -> None:
        with pytest.raises(TypeError, match="already used"):
            TypeRegistry().declare_object("String")

    def test_object_types_sorted(self) -> None:
        registry = TypeRegistry()
        registry.declare_object("Post")
        registry.declare_object("Author")
        assert [t.name for t in registry.object_types()] == ["Author", "Post"]

    def test_snapshot_is_sorted_and_read_only(self) -> None:
        registry = TypeRegistry()
        registry.declare_object("Post")
        snapshot = registry.snapshot()
        assert list(snapshot) == sorted(snapshot)
        with pytest.raises(TypeError):
            snapshot["X"] = STRING  # type: ignore[index]

    def test_snapshot_is_detached_from_later_registrations(self) -> None:
        registry = TypeRegistry()
        snapshot = registry.snapshot()
        registry.declare_object("Post")
        assert "Post" not in snapshot


# ===========================================================================
# Names
# ===========================================================================


class TestUniqueName:
    def test_same_owner_same_name(self) -> None:
        registry = TypeRegistry()
        first = registry.unique_name("PostMeta", owner="Post.meta")
        assert registry.unique_name("PostMeta", owner="Post.meta") == first == "PostMeta"

    def test_other_owner_gets_numbered_name(self) -> None:
        registry = TypeRegistry()
        registry.unique_name("Meta", owner="Post.meta")
        assert registry.unique_name("Meta", owner="Page.meta") == "Meta_2"
        assert registry.unique_name("Meta", owner="Tag.meta") == "Meta_3"

    def test_registered_names_are_taken(self) -> None:
        assert TypeRegistry().unique_name("String", owner="x") == "String_2"

    def test_declared_names_are_taken(self) -> None:
        registry = TypeRegistry({"Meta": {}})
        assert registry.unique_name("Meta", owner="Post.meta") == "Meta_2"

    def test_base_is_sanitized(self) -> None:
        assert TypeRegistry().unique_name("my-type", owner="x") == "my_type"


# ===========================================================================
# Lists
# ===========================================================================


class TestWrapInList:
    def test_memoized(self) -> None:
        registry = TypeRegistry()
        assert registry.wrap_in_list(INT) is registry.wrap_in_list(INT)

    def test_registered_under_bracket_name(self) -> None:
        registry = TypeRegistry()
        wrapped = registry.wrap_in_list(FLOAT)
        assert registry.get_type("[Float]") is wrapped

    def test_link_and_object_share_display_name(self) -> None:
        registry = TypeRegistry()
        post = registry.declare_object("Post")
        objects = registry.wrap_in_list(post)
        links = registry.wrap_in_list(LinkType("Post"))
        assert objects is not links
        assert links.of == LinkType("Post")
        assert registry.get_type("[Post]") is objects

    def test_nested(self) -> None:
        registry = TypeRegistry()
        nested = registry.wrap_in_list(registry.wrap_in_list(INT))
        assert nested.name == "[[Int]]"
        assert registry.get_type("[[Int]]") is nested


# ===========================================================================
# Declared references
# ===========================================================================


class TestResolveDeclared:
    def test_scalar(self) -> None:
        assert TypeRegistry().resolve_declared(NamedRef("String")) is STRING

    def test_list_of_scalar(self) -> None:
        registry = TypeRegistry()
        resolved = registry.resolve_declared(ListRef(NamedRef("Int")))
        assert resolved is registry.wrap_in_list(INT)

    def test_declared_object_built_on_demand(self) -> None:
        registry = TypeRegistry(
            {"Author": {"bio": NamedRef("String"), "tags": ListRef(NamedRef("String"))}}
        )
        author = registry.resolve_declared(NamedRef("Author"))
        assert isinstance(author, ObjectType)
        assert author.fields["bio"] is STRING
        assert author.fields["tags"] == ListType(STRING)
        assert registry.get_type("Author") is author

    def test_declared_object_sanitizes_field_names(self) -> None:
        registry = TypeRegistry({"Author": {"first-name": NamedRef("String")}})
        author = registry.resolve_declared(NamedRef("Author"))
        assert "first_name" in author.fields
        assert author.source_key("first_name") == "first-name"

    def test_declared_objects_can_reference_each_other(self) -> None:
        registry = TypeRegistry(
            {"Post": {"meta": NamedRef("Meta")}, "Meta": {"rating": NamedRef("Float")}}
        )
        post = registry.resolve_declared(NamedRef("Post"))
        assert post.fields["meta"] is registry.get_type("Meta")

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(DeclaredTypeError) as excinfo:
            TypeRegistry().resolve_declared(NamedRef("Nope"), owner="Post.x")
        assert "Nope" in str(excinfo.value)

    def test_unknown_element_raises(self) -> None:
        with pytest.raises(DeclaredTypeError):
            TypeRegistry().resolve_declared(ListRef(NamedRef("Nope")))
