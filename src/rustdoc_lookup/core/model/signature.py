"""Render one-line signatures from rustdoc JSON item and type shapes.

Rendering is best-effort across the supported format versions: field
names that changed between versions (``decl``/``sig``, ``mutable``/``is_mutable``,
``bindings``/``constraints``) are all accepted, and anything unrecognised
renders as ``_``.
"""

from typing import Any

UNKNOWN = "_"

_DICT_PAYLOADS = frozenset(
    {"array", "borrowed_ref", "raw_pointer", "dyn_trait", "function_pointer", "qualified_path", "pat"}
)


def _unwrap(node: Any) -> tuple[str | None, Any]:
    """Return ``(tag, payload)`` for an externally tagged enum value.

    Handles ``{"tag": payload}`` and bare ``"tag"`` strings.
    """
    if isinstance(node, str):
        return node, None
    if not isinstance(node, dict) or not node:
        return None, None
    if len(node) == 1:
        tag, payload = next(iter(node.items()))
        return tag, payload
    return None, None


def render_type(ty: Any) -> str:
    tag, p = _unwrap(ty)
    if tag is None or (tag in _DICT_PAYLOADS and not isinstance(p, dict)):
        return UNKNOWN
    if tag in ("primitive", "generic"):
        return p if isinstance(p, str) else UNKNOWN
    if tag == "resolved_path":
        return _render_path(p)
    if tag == "tuple":
        inner = ", ".join(render_type(t) for t in p or ())
        return f"({inner},)" if p and len(p) == 1 else f"({inner})"
    if tag == "slice":
        return f"[{render_type(p)}]"
    if tag == "array":
        return f"[{render_type(p.get('type'))}; {p.get('len', UNKNOWN)}]"
    if tag == "borrowed_ref":
        lifetime = f"{p['lifetime']} " if p.get("lifetime") else ""
        mut = "mut " if p.get("is_mutable", p.get("mutable")) else ""
        return f"&{lifetime}{mut}{render_type(p.get('type'))}"
    if tag == "raw_pointer":
        mut = "mut" if p.get("is_mutable", p.get("mutable")) else "const"
        return f"*{mut} {render_type(p.get('type'))}"
    if tag == "impl_trait":
        return "impl " + render_bounds(p or ())
    if tag == "dyn_trait":
        parts = [_render_path(t.get("trait")) for t in p.get("traits", ())]
        if p.get("lifetime"):
            parts.append(p["lifetime"])
        return "dyn " + " + ".join(parts)
    if tag == "function_pointer":
        sig = p.get("sig") or p.get("decl") or {}
        return "fn" + _render_fn_decl(sig)
    if tag == "qualified_path":
        self_ty = render_type(p.get("self_type"))
        trait = p.get("trait")
        if trait and (trait.get("path") or trait.get("name")):
            return f"<{self_ty} as {_render_path(trait)}>::{p.get('name', UNKNOWN)}"
        return f"{self_ty}::{p.get('name', UNKNOWN)}"
    if tag == "infer":
        return "_"
    if tag == "pat":
        return render_type(p.get("type"))
    return UNKNOWN


def _render_path(path: Any) -> str:
    if not isinstance(path, dict):
        return UNKNOWN
    name = path.get("path") or path.get("name") or UNKNOWN
    return name + _render_generic_args(path.get("args"))


def _render_generic_args(args: Any) -> str:
    tag, p = _unwrap(args)
    if tag == "angle_bracketed" and p:
        parts = [_render_generic_arg(a) for a in p.get("args", ())]
        for c in p.get("constraints", p.get("bindings", ())):
            parts.append(_render_constraint(c))
        return f"<{', '.join(parts)}>" if parts else ""
    if tag == "parenthesized" and p:
        inputs = ", ".join(render_type(t) for t in p.get("inputs", ()))
        output = f" -> {render_type(p['output'])}" if p.get("output") else ""
        return f"({inputs}){output}"
    return ""


def _render_generic_arg(arg: Any) -> str:
    tag, p = _unwrap(arg)
    if tag == "lifetime":
        return p
    if tag == "type":
        return render_type(p)
    if tag == "const":
        return p.get("expr", UNKNOWN) if isinstance(p, dict) else UNKNOWN
    return UNKNOWN


def _render_constraint(c: dict[str, Any]) -> str:
    name = c.get("name", UNKNOWN) + _render_generic_args(c.get("args"))
    tag, p = _unwrap(c.get("binding"))
    if tag == "equality":
        term_tag, term = _unwrap(p)
        value = render_type(term) if term_tag == "type" else UNKNOWN
        return f"{name} = {value}"
    if tag == "constraint":
        return f"{name}: {render_bounds(p or ())}"
    return name


def render_bounds(bounds: Any) -> str:
    parts = []
    for bound in bounds:
        tag, p = _unwrap(bound)
        if tag == "trait_bound":
            modifier = "?" if p.get("modifier") == "maybe" else ""
            parts.append(modifier + _render_path(p.get("trait")))
        elif tag == "outlives":
            parts.append(p)
        elif tag == "use":
            parts.append(f"use<{', '.join(str(a) for a in p)}>")
    return " + ".join(parts)


def render_generics(generics: Any) -> str:
    """Render ``<T: Bound, 'a>``, skipping synthetic ``impl Trait`` params."""
    if not isinstance(generics, dict):
        return ""
    params = []
    for param in generics.get("params", ()):
        tag, p = _unwrap(param.get("kind"))
        name = param.get("name", UNKNOWN)
        if tag == "lifetime":
            outlives = p.get("outlives") if p else None
            params.append(f"{name}: {' + '.join(outlives)}" if outlives else name)
        elif tag == "type":
            if p and p.get("is_synthetic", p.get("synthetic")):
                continue
            bounds = render_bounds(p.get("bounds", ())) if p else ""
            params.append(f"{name}: {bounds}" if bounds else name)
        elif tag == "const":
            params.append(f"const {name}: {render_type(p.get('type'))}")
    return f"<{', '.join(params)}>" if params else ""


def _render_fn_decl(sig: dict[str, Any]) -> str:
    inputs = []
    for name, ty in sig.get("inputs", ()):
        if name == "self":
            inputs.append(_render_self(ty))
        else:
            inputs.append(f"{name}: {render_type(ty)}")
    if sig.get("is_c_variadic", sig.get("c_variadic")):
        inputs.append("...")
    output = sig.get("output")
    ret = f" -> {render_type(output)}" if output is not None else ""
    return f"({', '.join(inputs)}){ret}"


def _render_self(ty: Any) -> str:
    tag, p = _unwrap(ty)
    if tag == "generic" and p == "Self":
        return "self"
    if tag == "borrowed_ref" and isinstance(p, dict) and _unwrap(p.get("type")) == ("generic", "Self"):
        lifetime = f"{p['lifetime']} " if p.get("lifetime") else ""
        mut = "mut " if p.get("is_mutable", p.get("mutable")) else ""
        return f"&{lifetime}{mut}self"
    return f"self: {render_type(ty)}"


def _fn_qualifiers(header: dict[str, Any]) -> str:
    quals = []
    if header.get("is_const", header.get("const")):
        quals.append("const")
    if header.get("is_async", header.get("async")):
        quals.append("async")
    if header.get("is_unsafe", header.get("unsafe")):
        quals.append("unsafe")
    abi = header.get("abi")
    if abi and abi != "Rust":
        abi_name = next(iter(abi)) if isinstance(abi, dict) else abi
        quals.append(f'extern "{abi_name}"')
    return "".join(q + " " for q in quals)


def render_signature(tag: str, name: str, inner: Any, *, public: bool = True) -> str:
    """One-line declaration for an item of kind ``tag`` (rustdoc's inner key)."""
    vis = "pub " if public else ""
    if tag == "struct_field":
        return f"{vis}{name}: {render_type(inner)}"
    inner = inner if isinstance(inner, dict) else {}
    generics = render_generics(inner.get("generics"))

    if tag == "function":
        sig = inner.get("sig") or inner.get("decl") or {}
        quals = _fn_qualifiers(inner.get("header") or {})
        return f"{vis}{quals}fn {name}{generics}{_render_fn_decl(sig)}"
    if tag == "struct":
        kind_tag, kind = _unwrap(inner.get("kind"))
        suffix = ";" if kind_tag == "unit" else ""
        if kind_tag == "tuple":
            suffix = f"({', '.join('_' for _ in kind or ())});"
        return f"{vis}struct {name}{generics}{suffix}"
    if tag in ("enum", "union"):
        return f"{vis}{tag} {name}{generics}"
    if tag == "variant":
        kind_tag, kind = _unwrap(inner.get("kind"))
        if kind_tag == "tuple":
            return f"{name}({', '.join('_' for _ in kind or ())})"
        if kind_tag == "struct":
            return f"{name} {{ .. }}"
        return name
    if tag == "trait":
        unsafe = "unsafe " if inner.get("is_unsafe") else ""
        auto = "auto " if inner.get("is_auto") else ""
        bounds = render_bounds(inner.get("bounds", ()))
        return f"{vis}{unsafe}{auto}trait {name}{generics}" + (f": {bounds}" if bounds else "")
    if tag == "trait_alias":
        return f"{vis}trait {name}{generics} = {render_bounds(inner.get('params', ()))}"
    if tag == "type_alias":
        return f"{vis}type {name}{generics} = {render_type(inner.get('type'))}"
    if tag == "constant":
        return f"{vis}const {name}: {render_type(inner.get('type'))}"
    if tag == "static":
        mut = "mut " if inner.get("is_mutable", inner.get("mutable")) else ""
        return f"{vis}static {mut}{name}: {render_type(inner.get('type'))}"
    if tag == "assoc_const":
        return f"const {name}: {render_type(inner.get('type'))}"
    if tag == "assoc_type":
        bounds = render_bounds(inner.get("bounds", ()))
        return f"type {name}{generics}" + (f": {bounds}" if bounds else "")
    if tag == "module":
        return f"{vis}mod {name}"
    if tag == "macro":
        return f"macro_rules! {name}"
    if tag == "proc_macro":
        kind = inner.get("kind")
        if kind == "derive":
            return f"#[derive({name})]"
        if kind == "attr":
            return f"#[{name}]"
        return f"{name}!()"
    if tag == "primitive":
        return f"primitive {name}"
    if tag == "extern_crate":
        return f"extern crate {name}"
    if tag == "extern_type":
        return f"{vis}type {name}"
    return name
