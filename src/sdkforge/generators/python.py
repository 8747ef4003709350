"""Python SDK generator: Pydantic models and an httpx client."""

from __future__ import annotations

from typing import Any

from sdkforge.generators.base import BaseGenerator, path_segments
from sdkforge.models import GeneratedFile, TargetLanguage
from sdkforge.naming import python_identifier


_CLIENT_TYPING = {"from typing import Any", "from typing import Optional"}


class PythonGenerator(BaseGenerator):
    language = TargetLanguage.PYTHON
    build_command = "python -m build"
    test_command = "pytest"
    publish_command = "twine upload dist/*"
    registry_url = "https://pypi.org/project/{package}"
    install_command = "pip install {package}"
    void_type = "None"

    def field_name(self, name: str) -> str:
        return python_identifier(name)

    def method_name(self, operation_id: str) -> str:
        return python_identifier(operation_id)

    def signature(self, endpoint: dict[str, Any]) -> str:
        positional = [f"{p['field']}: {p['type']}" for p in endpoint["params"] if p["required"]]
        keyword = []
        body = endpoint["body"]
        if body is not None:
            keyword.append(f"body: {body['type']}" + ("" if body["required"] else " = None"))
        keyword.extend(
            f"{p['field']}: {p['type']} = None" for p in endpoint["params"] if not p["required"]
        )
        parts = ["self", *positional]
        if keyword:
            parts += ["*", *keyword]
        return ", ".join(parts)

    def path_expression(self, path: str, path_params: list[dict[str, Any]]) -> str:
        fields = {p["name"]: p["field"] for p in path_params}
        pieces = []
        for text, is_param in path_segments(path):
            if is_param and text in fields:
                pieces.append("{_path(" + fields[text] + ")}")
            elif is_param:
                pieces.append("{{" + text + "}}")
            else:
                pieces.append(text.replace("{", "{{").replace("}", "}}").replace('"', '\\"'))
        if not fields:
            return '"' + "".join(pieces).replace("{{", "{").replace("}}", "}") + '"'
        return 'f"' + "".join(pieces) + '"'

    @property
    def source_dir(self) -> str:
        return f"src/{self.module_name}"

    def generate_types(self) -> list[GeneratedFile]:
        return [
            self.render(
                "python/models.py.j2",
                f"{self.source_dir}/models.py",
                model_imports=self.collect_imports(self.type_views),
            ),
            self.render("python/errors.py.j2", f"{self.source_dir}/errors.py"),
        ]

    def generate_client(self) -> list[GeneratedFile]:
        return [
            self.render(
                "python/client.py.j2",
                f"{self.source_dir}/client.py",
                client_imports=[
                    statement
                    for statement in self.collect_imports(self.endpoint_views)
                    if statement not in _CLIENT_TYPING
                ],
            ),
            self.render("python/__init__.py.j2", f"{self.source_dir}/__init__.py"),
        ]

    def generate_manifest(self) -> list[GeneratedFile]:
        return [self.render("python/pyproject.toml.j2", "pyproject.toml")]

    def generate_examples(self) -> list[GeneratedFile]:
        return [self.render("python/example.py.j2", "examples/basic.py")]
