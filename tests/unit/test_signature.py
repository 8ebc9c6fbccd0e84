"""Tests for signature rendering across rustdoc shapes."""

import pytest

from rustdoc_lookup.core.model.signature import render_generics, render_signature, render_type

VEC_U8 = {
    "resolved_path": {
        "path": "Vec",
        "id": 1,
        "args": {"angle_bracketed": {"args": [{"type": {"primitive": "u8"}}], "constraints": []}},
    }
}


@pytest.mark.parametrize(
    ("ty", "expected"),
    [
        ({"primitive": "bool"}, "bool"),
        ({"generic": "T"}, "T"),
        (VEC_U8, "Vec<u8>"),
        ({"slice": {"primitive": "u8"}}, "[u8]"),
        ({"array": {"type": {"primitive": "u8"}, "len": "4"}}, "[u8; 4]"),
        ({"tuple": []}, "()"),
        ({"tuple": [{"generic": "A"}, {"generic": "B"}]}, "(A, B)"),
        ({"borrowed_ref": {"lifetime": "'a", "is_mutable": True, "type": {"primitive": "str"}}}, "&'a mut str"),
        ({"borrowed_ref": {"lifetime": None, "mutable": False, "type": {"primitive": "str"}}}, "&str"),
        ({"raw_pointer": {"is_mutable": False, "type": {"primitive": "u8"}}}, "*const u8"),
        (
            {"impl_trait": [{"trait_bound": {"trait": {"path": "Iterator", "id": 2, "args": None}, "generic_params": [], "modifier": "none"}}]},
            "impl Iterator",
        ),
        (
            {"qualified_path": {"name": "Output", "args": None, "self_type": {"generic": "F"}, "trait": {"path": "Future", "id": 3, "args": None}}},
            "<F as Future>::Output",
        ),
        ("infer", "_"),
        ({"something_new": {}}, "_"),
    ],
)
def test_render_type(ty: object, expected: str) -> None:
    assert render_type(ty) == expected


def test_generics_skip_synthetic_params() -> None:
    generics = {
        "params": [
            {"name": "'a", "kind": {"lifetime": {"outlives": []}}},
            {"name": "T", "kind": {"type": {"bounds": [{"trait_bound": {"trait": {"path": "Clone", "id": 4, "args": None}, "generic_params": [], "modifier": "none"}}], "default": None, "is_synthetic": False}}},
            {"name": "impl Fn()", "kind": {"type": {"bounds": [], "default": None, "is_synthetic": True}}},
        ],
        "where_predicates": [],
    }
    assert render_generics(generics) == "<'a, T: Clone>"


def test_async_unsafe_function() -> None:
    inner = {
        "sig": {"inputs": [["n", {"primitive": "usize"}]], "output": None, "is_c_variadic": False},
        "generics": {"params": [], "where_predicates": []},
        "header": {"is_const": False, "is_unsafe": True, "is_async": True, "abi": "Rust"},
    }
    assert render_signature("function", "run", inner) == "pub async unsafe fn run(n: usize)"


def test_older_decl_and_header_field_names() -> None:
    inner = {
        "decl": {"inputs": [], "output": {"primitive": "u8"}, "c_variadic": False},
        "generics": {"params": [], "where_predicates": []},
        "header": {"const": True, "unsafe": False, "async": False, "abi": "Rust"},
    }
    assert render_signature("function", "answer", inner) == "pub const fn answer() -> u8"


@pytest.mark.parametrize(
    ("tag", "inner", "expected"),
    [
        ("constant", {"type": {"primitive": "u32"}, "const": {"expr": "1", "value": None, "is_literal": True}}, "pub const MAX: u32"),
        ("static", {"type": {"primitive": "u32"}, "is_mutable": True, "expr": "0"}, "pub static mut MAX: u32"),
        ("type_alias", {"type": {"primitive": "u32"}, "generics": {"params": [], "where_predicates": []}}, "pub type MAX = u32"),
        ("macro", "macro_rules! MAX { () => {} }", "macro_rules! MAX"),
        ("struct_field", {"primitive": "u32"}, "pub MAX: u32"),
    ],
)
def test_simple_item_signatures(tag: str, inner: object, expected: str) -> None:
    assert render_signature(tag, "MAX", inner) == expected


def test_private_items_have_no_pub() -> None:
    assert render_signature("module", "inner", {}, public=False) == "mod inner"
