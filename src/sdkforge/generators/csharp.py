"""C# SDK generator: System.Text.Json models and an HttpClient client."""

from __future__ import annotations

from typing import Any, Optional

from sdkforge.generators.base import BaseGenerator, path_segments
from sdkforge.models import GeneratedFile, TargetLanguage, TypeDefinition
from sdkforge.naming import camel_case, pascal_case

RESERVED_WORDS = frozenset(
    """
    abstract as base bool break byte case catch char checked class const continue
    decimal default delegate do double else enum event explicit extern false
    finally fixed float for foreach goto if implicit in int interface internal is
    lock long namespace new null object operator out override params private
    protected public readonly ref return sbyte sealed short sizeof stackalloc
    static string struct switch this throw true try typeof uint ulong unchecked
    unsafe ushort using virtual void volatile while
    """.split()
)


class CSharpGenerator(BaseGenerator):
    language = TargetLanguage.CSHARP
    build_command = "dotnet build"
    test_command = "dotnet test"
    publish_command = "dotnet pack -c Release && dotnet nuget push bin/Release/*.nupkg --source nuget.org"
    registry_url = "https://www.nuget.org/packages/{package}"
    install_command = "dotnet add package {package}"
    void_type = "void"

    @property
    def namespace(self) -> str:
        return pascal_case(self.package_name)

    def extra_context(self) -> dict[str, Any]:
        return {"namespace": self.namespace}

    def field_name(self, name: str) -> str:
        return pascal_case(name)

    def param_name(self, name: str) -> str:
        ident = camel_case(name)
        return "@" + ident if ident in RESERVED_WORDS else ident

    def method_name(self, operation_id: str) -> str:
        return pascal_case(operation_id) + "Async"

    def _type_view(self, definition: TypeDefinition) -> Optional[dict[str, Any]]:
        view = super()._type_view(definition)
        if view is None:
            return None
        if view["kind"] == "object":
            # Members may not share the name of their enclosing type.
            for prop in view["properties"]:
                if prop["field"] == view["name"]:
                    prop["field"] += "Value"
        elif view["kind"] == "enum":
            for value in view["members"]:
                value["member"] = pascal_case(value["name"])
        return view

    def signature(self, endpoint: dict[str, Any]) -> str:
        body = endpoint["body"]
        parts = [f"{p['type']} {p['field']}" for p in endpoint["params"] if p["required"]]
        if body is not None and body["required"]:
            parts.append(f"{body['type']} body")
        parts.extend(
            f"{p['type']} {p['field']} = default" for p in endpoint["params"] if not p["required"]
        )
        if body is not None and not body["required"]:
            parts.append(f"{body['type']} body = default")
        if endpoint["streaming"]:
            parts.append("[EnumeratorCancellation] CancellationToken cancellationToken = default")
        else:
            parts.append("CancellationToken cancellationToken = default")
        return ", ".join(parts)

    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        fields = {p["name"]: p["field"] for p in path_params}
        pieces = []
        for text, is_param in path_segments(path):
            if is_param and text in fields:
                pieces.append("{Uri.EscapeDataString(FormatValue(" + fields[text] + "))}")
            elif is_param:
                pieces.append("{{" + text + "}}")
            else:
                pieces.append(text.replace("{", "{{").replace("}", "}}").replace('"', '\\"'))
        if not fields:
            return '"' + "".join(pieces).replace("{{", "{").replace("}}", "}") + '"'
        return '$"' + "".join(pieces) + '"'

    def generate_types(self) -> list[GeneratedFile]:
        return [
            self.render("csharp/Models.cs.j2", "src/Models.cs"),
            self.render("csharp/Errors.cs.j2", "src/Errors.cs"),
        ]

    def generate_client(self) -> list[GeneratedFile]:
        return [self.render("csharp/Client.cs.j2", f"src/{self.client_name}.cs")]

    def generate_manifest(self) -> list[GeneratedFile]:
        return [self.render("csharp/project.csproj.j2", f"{self.namespace}.csproj")]

    def generate_examples(self) -> list[GeneratedFile]:
        return [self.render("csharp/Example.cs.j2", "examples/Example.cs")]
