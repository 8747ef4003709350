"""Rust SDK generator: serde types and an async reqwest client.

Rust is the one target with native sum types, so unions are lowered to their
tagged name and declared here as ``#[serde(untagged)]`` enums.
"""

from __future__ import annotations

from typing import Any, Optional

from sdkforge.generators.base import BaseGenerator, path_segments
from sdkforge.models import GeneratedFile, TargetLanguage, TypeDefinition
from sdkforge.naming import pascal_case, snake_case

RESERVED_WORDS = frozenset(
    """
    as async await break const continue dyn else enum extern false fn for if impl
    in let loop match mod move mut pub ref return static struct trait true type
    unsafe use where while abstract become box do final macro override priv try
    typeof unsized virtual yield
    """.split()
)

# Keywords that cannot be written as raw identifiers.
_NOT_RAW = frozenset({"self", "Self", "super", "crate"})


def rust_identifier(name: str) -> str:
    ident = snake_case(name)
    if ident in _NOT_RAW:
        return ident + "_"
    if ident in RESERVED_WORDS:
        return "r#" + ident
    return ident


class RustGenerator(BaseGenerator):
    language = TargetLanguage.RUST
    build_command = "cargo build"
    test_command = "cargo test"
    publish_command = "cargo publish"
    registry_url = "https://crates.io/crates/{package}"
    install_command = "cargo add {package}"
    void_type = "()"

    def field_name(self, name: str) -> str:
        return rust_identifier(name)

    def method_name(self, operation_id: str) -> str:
        return rust_identifier(operation_id)

    def _type_view(self, definition: TypeDefinition) -> Optional[dict[str, Any]]:
        view = super()._type_view(definition)
        if view is None:
            return None
        if view["kind"] == "object":
            # A struct cannot contain itself without indirection.
            name = view["name"]
            for prop in view["properties"]:
                if prop["type"] == name:
                    prop["type"] = f"Box<{name}>"
                elif prop["type"] == f"Option<{name}>":
                    prop["type"] = f"Option<Box<{name}>>"
                prop["rename"] = prop["field"].removeprefix("r#") != prop["name"]
        elif view["kind"] == "enum":
            for value in view["members"]:
                value["variant"] = pascal_case(value["name"])
        return view

    def signature(self, endpoint: dict[str, Any]) -> str:
        parts = ["&self"]
        parts.extend(f"{p['field']}: {p['type']}" for p in endpoint["params"])
        body = endpoint["body"]
        if body is not None:
            parts.append(f"body: &{body['type']}")
        return ", ".join(parts)

    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        fields = {p["name"]: p["field"] for p in path_params}
        pattern = []
        args = []
        for text, is_param in path_segments(path):
            if is_param and text in fields:
                pattern.append("{}")
                args.append(f"urlencoding::encode(&param_string(&{fields[text]}))")
            elif is_param:
                pattern.append("{{" + text + "}}")
            else:
                pattern.append(text.replace("{", "{{").replace("}", "}}").replace('"', '\\"'))
        literal = '"' + "".join(pattern) + '"'
        if not args:
            return f"{literal}.to_string()"
        return f"format!({literal}, {', '.join(args)})"

    def generate_types(self) -> list[GeneratedFile]:
        return [
            self.render("rust/types.rs.j2", "src/types.rs"),
            self.render("rust/error.rs.j2", "src/error.rs"),
        ]

    def generate_client(self) -> list[GeneratedFile]:
        return [
            self.render("rust/client.rs.j2", "src/client.rs"),
            self.render("rust/lib.rs.j2", "src/lib.rs"),
        ]

    def generate_manifest(self) -> list[GeneratedFile]:
        return [self.render("rust/Cargo.toml.j2", "Cargo.toml")]

    def generate_examples(self) -> list[GeneratedFile]:
        return [self.render("rust/example.rs.j2", "examples/basic.rs")]
