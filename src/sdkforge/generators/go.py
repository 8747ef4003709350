"""Go SDK generator: tagged structs and a net/http client.

Go has no sum types; unions are lowered to ``interface{}`` by the mapper and
only documented as aliases here.
"""

from __future__ import annotations

import re
from typing import Any

from sdkforge.generators.base import BaseGenerator, path_segments
from sdkforge.models import GeneratedFile, TargetLanguage
from sdkforge.naming import camel_case, pascal_case

RESERVED_WORDS = frozenset(
    """
    break case chan const continue default defer else fallthrough for func go
    goto if import interface map package range return select struct switch type
    var ctx
    """.split()
)


class GoGenerator(BaseGenerator):
    language = TargetLanguage.GO
    build_command = "go build ./..."
    test_command = "go test ./..."
    publish_command = "GOPROXY=proxy.golang.org go list -m {package}@latest"
    registry_url = "https://pkg.go.dev/{package}"
    install_command = "go get {package}"
    void_type = ""

    @property
    def go_package(self) -> str:
        """The package clause: the module name without separators."""
        name = re.sub(r"[^a-z0-9]", "", self.module_name.lower())
        if not name or name[0].isdigit():
            name = "sdk" + name
        return name

    def extra_context(self) -> dict[str, Any]:
        return {"go_package": self.go_package}

    def field_name(self, name: str) -> str:
        return pascal_case(name)

    def param_name(self, name: str) -> str:
        ident = camel_case(name)
        return ident + "_" if ident in RESERVED_WORDS else ident

    def method_name(self, operation_id: str) -> str:
        return pascal_case(operation_id)

    def signature(self, endpoint: dict[str, Any]) -> str:
        parts = ["ctx context.Context"]
        parts.extend(f"{p['field']} {p['type']}" for p in endpoint["params"])
        body = endpoint["body"]
        if body is not None:
            parts.append(f"body {body['type']}")
        return ", ".join(parts)

    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        fields = {p["name"]: p["field"] for p in path_params}
        pattern = []
        args = []
        for text, is_param in path_segments(path):
            if is_param and text in fields:
                pattern.append("%s")
                args.append(f"url.PathEscape(fmt.Sprint({fields[text]}))")
            elif is_param:
                pattern.append("{" + text + "}")
            else:
                pattern.append(text.replace("%", "%%").replace('"', '\\"'))
        literal = '"' + "".join(pattern) + '"'
        if not args:
            return literal.replace("%%", "%")
        return f"fmt.Sprintf({literal}, {', '.join(args)})"

    def generate_types(self) -> list[GeneratedFile]:
        return [
            self.render("go/types.go.j2", "types.go"),
            self.render("go/errors.go.j2", "errors.go"),
        ]

    def generate_client(self) -> list[GeneratedFile]:
        return [self.render("go/client.go.j2", "client.go")]

    def generate_manifest(self) -> list[GeneratedFile]:
        return [self.render("go/go.mod.j2", "go.mod")]

    def generate_examples(self) -> list[GeneratedFile]:
        return [self.render("go/example.go.j2", "examples/basic/main.go")]
