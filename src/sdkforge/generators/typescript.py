"""TypeScript and JavaScript SDK generators.

Both emit an ES module client built on the global ``fetch``. The TypeScript
generator emits interfaces and string enums; the JavaScript generator emits
the same structure with JSDoc typedefs and frozen enum objects, and lowers
unions to ``any`` through its own row of the lowering table.
"""

from __future__ import annotations

import re
from typing import Any

from sdkforge.generators.base import BaseGenerator, path_segments
from sdkforge.models import GeneratedFile, TargetLanguage
from sdkforge.naming import camel_case

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

RESERVED_WORDS = frozenset(
    """
    break case catch class const continue debugger default delete do else enum
    export extends false finally for function if import in instanceof new null
    return super switch this throw true try typeof var void while with yield let
    static implements interface package private protected public await
    """.split()
)


class TypeScriptGenerator(BaseGenerator):
    language = TargetLanguage.TYPESCRIPT
    build_command = "npm run build"
    test_command = "npm test"
    publish_command = "npm publish"
    registry_url = "https://www.npmjs.com/package/{package}"
    install_command = "npm install {package}"
    void_type = "void"
    template_dir = "typescript"
    extension = "ts"

    def field_name(self, name: str) -> str:
        # Wire names are kept so that objects serialise as-is.
        return name if _IDENTIFIER.match(name) else f'"{name}"'

    def param_name(self, name: str) -> str:
        ident = camel_case(name)
        return ident + "_" if ident in RESERVED_WORDS else ident

    def method_name(self, operation_id: str) -> str:
        return self.param_name(operation_id)

    def param_value(self, param: dict[str, Any]) -> str:
        return param["field"] if param["required"] else f"options.{param['field']}"

    def signature(self, endpoint: dict[str, Any]) -> str:
        parts = [f"{p['field']}: {p['type']}" for p in endpoint["params"] if p["required"]]
        body = endpoint["body"]
        if body is not None:
            parts.append(f"body{'' if body['required'] else '?'}: {body['type']}")
        optional = [f"{p['field']}?: {p['type']}" for p in endpoint["params"] if not p["required"]]
        if optional:
            parts.append("options: { " + "; ".join(optional) + " } = {}")
        return ", ".join(parts)

    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        fields = {p["name"]: p["field"] for p in path_params}
        pieces = []
        for text, is_param in path_segments(path):
            if is_param and text in fields:
                pieces.append("${encodeURIComponent(String(" + fields[text] + "))}")
            elif is_param:
                pieces.append("{" + text + "}")
            else:
                pieces.append(text.replace("`", "\\`").replace("${", "\\${"))
        return "`" + "".join(pieces) + "`"

    def _file(self, template: str, output_path: str, **extra: Any) -> GeneratedFile:
        return self.render(f"{self.template_dir}/{template}.j2", output_path, **extra)

    def generate_types(self) -> list[GeneratedFile]:
        return [
            self._file(f"types.{self.extension}", f"src/types.{self.extension}"),
            self._file(f"errors.{self.extension}", f"src/errors.{self.extension}"),
        ]

    def generate_client(self) -> list[GeneratedFile]:
        return [
            self._file(f"client.{self.extension}", f"src/client.{self.extension}"),
            self._file(f"index.{self.extension}", f"src/index.{self.extension}"),
        ]

    def generate_manifest(self) -> list[GeneratedFile]:
        files = [self._file("package.json", "package.json")]
        if self.language is TargetLanguage.TYPESCRIPT:
            files.append(self._file("tsconfig.json", "tsconfig.json"))
        return files

    def generate_examples(self) -> list[GeneratedFile]:
        return [self._file(f"example.{self.extension}", f"examples/basic.{self.extension}")]


class JavaScriptGenerator(TypeScriptGenerator):
    language = TargetLanguage.JAVASCRIPT
    build_command = "npm pack --dry-run"
    template_dir = "javascript"
    extension = "js"

    def signature(self, endpoint: dict[str, Any]) -> str:
        parts = [p["field"] for p in endpoint["params"] if p["required"]]
        if endpoint["body"] is not None:
            parts.append("body")
        if any(not p["required"] for p in endpoint["params"]):
            parts.append("options = {}")
        return ", ".join(parts)
