"""Exporter layer."""

from type_bundle.exporter.file_exporter import bundle_file_name, export_bundles, write_bundle
from type_bundle.exporter.manifest_generator import generate_manifest

__all__ = ["bundle_file_name", "export_bundles", "generate_manifest", "write_bundle"]
