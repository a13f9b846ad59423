"""Tests for type reference normalization and the type registry."""

import pytest

from gql_cachegen.core.errors import SchemaLoadError
from gql_cachegen.core.introspection import (
    MAX_TYPE_DEPTH,
    build_type_registry,
    normalize_type_ref,
    transform_schema,
)
from gql_cachegen.core.ir import TypeKind, TypeRef


def named(kind, name):
    return {"kind": kind, "name": name, "ofType": None}


def non_null(inner):
    return {"kind": "NON_NULL", "name": None, "ofType": inner}


def list_of(inner):
    return {"kind": "LIST", "name": None, "ofType": inner}


def field(name, type_, args=()):
    return {"name": name, "type": type_, "args": list(args), "isDeprecated": False, "deprecationReason": None}


def obj(name, fields):
    return {"kind": "OBJECT", "name": name, "fields": fields, "interfaces": []}


@pytest.fixture
def blog_types():
    """User and Post reference each other."""
    return [
        obj("Query", [
            field("users", list_of(non_null(named("OBJECT", "User")))),
            field("post", named("OBJECT", "Post"), [{"name": "id", "type": non_null(named("SCALAR", "ID"))}]),
        ]),
        obj("User", [
            field("id", non_null(named("SCALAR", "ID"))),
            field("posts", list_of(named("OBJECT", "Post"))),
            field("role", named("ENUM", "Role")),
        ]),
        obj("Post", [
            field("id", non_null(named("SCALAR", "ID"))),
            field("author", named("OBJECT", "User")),
        ]),
        {"kind": "ENUM", "name": "Role", "enumValues": [{"name": "ADMIN"}, {"name": "MEMBER"}]},
        {
            "kind": "INPUT_OBJECT",
            "name": "PostFilter",
            "inputFields": [{"name": "authorId", "type": named("SCALAR", "ID"), "defaultValue": None}],
        },
        {"kind": "OBJECT", "name": "__Schema", "fields": []},
    ]


# =============================================================================
# Type reference normalization
# =============================================================================


class TestNormalizeTypeRef:
    """Tests for normalize_type_ref."""

    def test_named_type(self):
        ref = normalize_type_ref(named("OBJECT", "User"))
        assert ref == TypeRef(kind=TypeKind.OBJECT, name="User")

    def test_wrapper_chain_is_mirrored(self):
        ref = normalize_type_ref(non_null(list_of(non_null(named("OBJECT", "User")))))
        assert str(ref) == "[User!]!"
        assert ref.is_non_null
        assert ref.is_list
        assert ref.base_name == "User"
        assert ref.base_kind is TypeKind.OBJECT

    def test_nullable_list(self):
        ref = normalize_type_ref(list_of(named("SCALAR", "String")))
        assert not ref.is_non_null
        assert ref.is_list
        assert ref.of_type.kind is TypeKind.SCALAR

    def test_wrapper_without_inner_type(self):
        ref = normalize_type_ref({"kind": "LIST", "ofType": None})
        assert ref.kind is TypeKind.LIST
        assert ref.has_unknown

    def test_not_a_mapping(self):
        assert normalize_type_ref(None).unknown
        assert normalize_type_ref("User").unknown

    def test_unrecognized_kind_keeps_name(self):
        ref = normalize_type_ref({"kind": "WEIRD", "name": "Thing"})
        assert ref.unknown
        assert ref.name == "Thing"

    def test_named_kind_without_name(self):
        assert normalize_type_ref({"kind": "OBJECT", "name": None}).unknown

    def test_absurd_nesting_degrades(self):
        raw = named("SCALAR", "Int")
        for _ in range(MAX_TYPE_DEPTH + 5):
            raw = list_of(raw)
        ref = normalize_type_ref(raw)
        assert ref.has_unknown


# =============================================================================
# Type registry
# =============================================================================


class TestBuildTypeRegistry:
    """Tests for build_type_registry."""

    def test_registers_all_named_types(self, blog_types):
        registry = build_type_registry(blog_types)
        assert set(registry) == {"Query", "User", "Post", "Role", "PostFilter"}

    def test_skips_introspection_types(self, blog_types):
        registry = build_type_registry(blog_types)
        assert "__Schema" not in registry

    def test_mutual_recursion_is_shallow(self, blog_types):
        registry = build_type_registry(blog_types)
        posts = registry["User"].get_field("posts")
        author = registry["Post"].get_field("author")
        assert posts.type.base_name == "Post"
        assert author.type.base_name == "User"
        assert registry.resolve(posts.type).get_field("author") == author
        assert registry.issues == ()

    def test_enum_values(self, blog_types):
        registry = build_type_registry(blog_types)
        assert registry["Role"].enum_values == ("ADMIN", "MEMBER")

    def test_input_fields(self, blog_types):
        registry = build_type_registry(blog_types)
        inputs = registry.input_fields_of("PostFilter")
        assert [f.name for f in inputs] == ["authorId"]
        assert not inputs[0].is_required

    def test_builtin_scalars_need_no_declaration(self, blog_types):
        registry = build_type_registry(blog_types)
        assert registry["User"].get_field("id").type.has_unknown is False
        assert registry.is_known("ID")

    def test_field_arguments(self, blog_types):
        registry = build_type_registry(blog_types)
        post = registry["Query"].get_field("post")
        assert [a.name for a in post.arguments] == ["id"]
        assert post.arguments[0].is_required

    def test_unknown_reference_is_marked(self):
        registry = build_type_registry([
            obj("Query", [field("ghost", list_of(named("OBJECT", "Ghost")))]),
        ])
        ghost = registry["Query"].get_field("ghost")
        assert ghost.type.is_list
        assert ghost.type.has_unknown
        assert ghost.type.base_name == "Ghost"
        assert len(registry.issues) == 1
        assert str(registry.issues[0]) == "Query.ghost: references unknown type 'Ghost'"

    def test_malformed_reference_is_recorded(self):
        registry = build_type_registry([obj("Query", [field("broken", {"kind": "NON_NULL"})])])
        assert registry["Query"].get_field("broken").type.has_unknown
        assert "malformed" in registry.issues[0].message

    def test_unsupported_type_kind_is_skipped(self):
        registry = build_type_registry([{"kind": "LIST", "name": "Weird"}, obj("Query", [])])
        assert "Weird" not in registry
        assert registry.issues[0].type_name == "Weird"

    def test_field_without_name_is_skipped(self):
        registry = build_type_registry([
            obj("Query", [field("users", list_of(named("SCALAR", "String"))), {"type": named("SCALAR", "String")}]),
        ])
        assert [f.name for f in registry["Query"].fields] == ["users"]
        assert registry.issues[0].type_name == "Query"
        assert "malformed field entry" in registry.issues[0].message

    def test_none_field_entry_is_skipped(self):
        registry = build_type_registry([
            obj("Query", [field("user", named("OBJECT", "User"))]),
            obj("User", [None, field("id", non_null(named("SCALAR", "ID")))]),
        ])
        assert [f.name for f in registry["User"].fields] == ["id"]
        assert len(registry.issues) == 1

    def test_malformed_arguments_and_input_fields(self):
        registry = build_type_registry([
            obj("Query", [field("post", named("SCALAR", "String"), [{"type": named("SCALAR", "ID")}, "id"])]),
            {"kind": "INPUT_OBJECT", "name": "PostFilter", "inputFields": [None, {"name": "title", "type": named("SCALAR", "String")}]},
        ])
        assert registry["Query"].get_field("post").arguments == ()
        assert [f.name for f in registry["PostFilter"].input_fields] == ["title"]
        assert [issue.type_name for issue in registry.issues] == ["Query.post", "Query.post", "PostFilter"]

    def test_type_with_non_string_name_is_ignored(self):
        registry = build_type_registry([{"kind": "OBJECT", "name": 42, "fields": []}, obj("Query", [])])
        assert list(registry) == ["Query"]

    def test_of_kind(self, blog_types):
        registry = build_type_registry(blog_types)
        assert {t.name for t in registry.of_kind(TypeKind.OBJECT)} == {"Query", "User", "Post"}


# =============================================================================
# Schema transform
# =============================================================================


class TestTransformSchema:
    """Tests for transform_schema."""

    def test_root_operations(self, blog_types):
        ir = transform_schema({"__schema": {"queryType": {"name": "Query"}, "mutationType": None, "types": blog_types}})
        assert [q.name for q in ir.queries] == ["users", "post"]
        assert ir.mutations == []
        assert ir.queries[1].has_required_arguments
        assert ir.queries[0].return_type_name == "User"

    def test_accepts_data_wrapper(self, blog_types):
        ir = transform_schema({"data": {"__schema": {"queryType": {"name": "Query"}, "types": blog_types}}})
        assert len(ir.queries) == 2

    def test_query_root_defaults_to_query(self, blog_types):
        ir = transform_schema({"__schema": {"types": blog_types}})
        assert [q.operation_type for q in ir.queries] == ["query", "query"]

    def test_mutation_root(self):
        types = [
            obj("Query", []),
            obj("Mutation", [field("login", named("SCALAR", "Boolean"), [{"name": "email", "type": named("SCALAR", "String")}])]),
        ]
        ir = transform_schema({"__schema": {"queryType": {"name": "Query"}, "mutationType": {"name": "Mutation"}, "types": types}})
        assert [m.name for m in ir.mutations] == ["login"]
        assert ir.mutations[0].has_arguments
        assert not ir.mutations[0].has_required_arguments

    def test_missing_schema(self):
        with pytest.raises(SchemaLoadError, match="no '__schema'"):
            transform_schema({"data": {}})
