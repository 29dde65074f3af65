"""
Write side of the link relation.

Modules:
    reconcile: LinkReconciler (admin-form merge, product duplication)
    codec: ``sku|qty|position`` import/export field
"""

from linkspine.links.codec import (
    EncodedLink,
    decode_link,
    decode_links,
    encode_links,
    links_from_field,
    read_import_csv,
    write_export_csv,
)
from linkspine.links.reconcile import LinkReconciler, PostedLinkRow, parse_posted_rows

__all__ = [
    "EncodedLink",
    "LinkReconciler",
    "PostedLinkRow",
    "decode_link",
    "decode_links",
    "encode_links",
    "links_from_field",
    "parse_posted_rows",
    "read_import_csv",
    "write_export_csv",
]
