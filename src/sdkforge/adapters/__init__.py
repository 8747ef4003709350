"""Format-specific front ends producing adapter trees for the builder.

* :mod:`~sdkforge.adapters.base` -- node models and the
  :class:`~sdkforge.adapters.base.SpecAdapter` contract.
* :mod:`~sdkforge.adapters.openapi` -- OpenAPI 3.0/3.1 documents.
* :mod:`~sdkforge.adapters.custom` -- the custom flat provider schema.

The concrete adapters import the builder, so they are not re-exported here;
import them from their own modules.
"""

from sdkforge.adapters.base import AdapterDocument, SchemaNode, SpecAdapter

__all__ = ["AdapterDocument", "SchemaNode", "SpecAdapter"]
