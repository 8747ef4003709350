"""sdkforge -- Compile API descriptions into client SDKs for seven languages.

This package ingests OpenAPI 3.x documents and a custom flat provider schema
format, lowers them into a single canonical, language-independent model, and
generates client libraries for Rust, TypeScript, Python, JavaScript, C#, Go
and Java from that model.

Typical workflow::

    sdkforge parse openapi.yaml -o schema.json     # build the canonical schema
    sdkforge validate schema.json                  # check graph invariants
    sdkforge generate openapi.yaml -l python -l go -o ./generated

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    registry: Deduplicating canonical type registry.
    builder: Adapter document to canonical schema lowering.
    validator: Post-build structural and graph checks.
    mapper: Cross-language type lowering table.
    orchestrator: Parallel multi-language generation.
    config: Layered generation settings.
    exceptions: Exception hierarchy with exit-code mapping.
"""

__version__ = "0.1.0"
