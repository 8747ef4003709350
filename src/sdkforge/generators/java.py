"""Java SDK generator: Jackson POJOs and a java.net.http client.

Each object and enum is written to its own file under the ``model``
sub-package, as javac requires for public classes.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from sdkforge.generators.base import BaseGenerator, path_segments
from sdkforge.mapper import MappedType
from sdkforge.models import GeneratedFile, TargetLanguage, TypeReference
from sdkforge.naming import camel_case, pascal_case, snake_case

RESERVED_WORDS = frozenset(
    """
    abstract assert boolean break byte case catch char class const continue
    default do double else enum extends final finally float for goto if
    implements import instanceof int interface long native new package private
    protected public return short static strictfp super switch synchronized this
    throw throws transient try void volatile while true false null var record
    """.split()
)

_BOXED = {"long": "Long", "double": "Double", "boolean": "Boolean"}
_GENERIC_PRIMITIVE = re.compile(r"<(long|double|boolean)>")


def box_generics(expression: str) -> str:
    """Replace primitive type arguments with their wrapper classes.

    >>> box_generics("Optional<List<long>>")
    'Optional<List<Long>>'
    """
    return _GENERIC_PRIMITIVE.sub(lambda m: f"<{_BOXED[m.group(1)]}>", expression)


def boxed_type(expression: str) -> str:
    return _BOXED.get(expression, expression)


def java_identifier(name: str) -> str:
    ident = camel_case(name)
    return ident + "_" if ident in RESERVED_WORDS else ident


class JavaGenerator(BaseGenerator):
    language = TargetLanguage.JAVA
    build_command = "mvn package"
    test_command = "mvn test"
    publish_command = "mvn deploy"
    registry_url = "https://central.sonatype.com/search?q={package}"
    install_command = "mvn install"
    void_type = "void"

    @property
    def java_package(self) -> str:
        provider = re.sub(r"[^a-z0-9]", "", snake_case(self.schema.metadata.provider_id))
        if not provider or provider[0].isdigit():
            provider = "api" + provider
        return f"com.{provider}.sdk"

    @property
    def source_root(self) -> str:
        return "src/main/java/" + self.java_package.replace(".", "/")

    def extra_context(self) -> dict[str, Any]:
        return {
            "java_package": self.java_package,
            "group_id": self.java_package.rsplit(".", 1)[0],
            "accessor": _accessor_name,
            "boxed": boxed_type,
        }

    def map(self, ref: Optional[TypeReference], optional: bool = False) -> MappedType:
        mapped = super().map(ref, optional)
        return MappedType(
            expression=box_generics(mapped.expression),
            imports=mapped.imports,
            nullable=mapped.nullable,
        )

    def field_name(self, name: str) -> str:
        return java_identifier(name)

    def method_name(self, operation_id: str) -> str:
        return java_identifier(operation_id)

    def signature(self, endpoint: dict[str, Any]) -> str:
        parts = [f"{p['type']} {p['field']}" for p in endpoint["params"]]
        body = endpoint["body"]
        if body is not None:
            parts.append(f"{body['type']} body")
        return ", ".join(parts)

    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        fields = {p["name"]: p["field"] for p in path_params}
        pieces = []
        literal = ""
        for text, is_param in path_segments(path):
            if is_param and text in fields:
                if literal:
                    pieces.append('"' + literal.replace('"', '\\"') + '"')
                    literal = ""
                pieces.append(f"encode({fields[text]})")
            elif is_param:
                literal += "{" + text + "}"
            else:
                literal += text
        if literal or not pieces:
            pieces.append('"' + literal.replace('"', '\\"') + '"')
        if not pieces[0].startswith('"'):
            pieces.insert(0, '""')
        return " + ".join(pieces)

    def generate_types(self) -> list[GeneratedFile]:
        files = []
        for view in self.type_views:
            if view["kind"] == "union":
                continue
            files.append(
                self.render(
                    "java/Model.java.j2",
                    f"{self.source_root}/model/{view['name']}.java",
                    model=view,
                )
            )
        files.append(self.render("java/ApiException.java.j2", f"{self.source_root}/ApiException.java"))
        return files

    def generate_client(self) -> list[GeneratedFile]:
        return [
            self.render(
                "java/Client.java.j2",
                f"{self.source_root}/{self.client_name}.java",
                client_imports=self.collect_imports(self.endpoint_views),
            )
        ]

    def generate_manifest(self) -> list[GeneratedFile]:
        return [self.render("java/pom.xml.j2", "pom.xml")]

    def generate_examples(self) -> list[GeneratedFile]:
        return [self.render("java/Example.java.j2", "examples/Example.java")]


def _accessor_name(field: str) -> str:
    return pascal_case(field.rstrip("_"))
