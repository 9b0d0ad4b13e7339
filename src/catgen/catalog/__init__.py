"""
The `catalog` sub-package contains modules that turn a resolved driver package
into deliverables.

This includes:
- Building `.cat` catalogs by rendering a Catalog Definition File and invoking
  `makecat`, then optionally `signtool`.
- Exporting a JSON manifest of the resolved files with their digests.
"""
