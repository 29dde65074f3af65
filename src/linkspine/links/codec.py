"""
Import/export codec for the per-product links field.

One CSV column per link kind (``_partlists_``) holds every link of that
kind for the row's product::

    sku,_partlists_
    FRAME-01,BOLT-M4|4|0,NUT-M4|4|1,WASHER|2.5|2

Each triple is ``linked sku | qty | position``. On export a link without
a stored qty is written as ``1`` and a missing position as ``0``. On
import an empty qty or position reads as absent; a row whose linked sku
does not resolve is reported as ``InvalidLinkRowError`` and skipped while
the remaining rows proceed. A missing or empty column means "no links of
this kind" and leaves the product's links alone.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import IO

from linkspine.core.errors import InvalidLinkRowError
from linkspine.core.result import Err, Ok, Result
from linkspine.domain.catalog.models import PARTLISTS, LinkKind, ProductLink
from linkspine.resolution.qty import ONE, coerce_qty, format_decimal

LINK_SEPARATOR = ","
FIELD_SEPARATOR = "|"
SKU_COLUMN = "sku"


@dataclass(frozen=True, slots=True)
class EncodedLink:
    """One decoded ``sku|qty|position`` triple."""

    sku: str
    qty: Decimal | None = None
    position: int | None = None

    def encode(self) -> str:
        qty = format_decimal(self.qty if self.qty is not None else ONE)
        position = self.position if self.position is not None else 0
        return FIELD_SEPARATOR.join((self.sku, qty, str(position)))


def encode_links(links: Iterable[ProductLink], kind: LinkKind = PARTLISTS) -> str:
    """Join the links of ``kind`` into one field value ("" when none)."""
    return LINK_SEPARATOR.join(
        EncodedLink(link.linked_product_sku, link.qty, link.position).encode()
        for link in links
        if link.link_type == kind.code
    )


def decode_link(text: str) -> EncodedLink:
    """Parse one triple.

    Raises:
        InvalidLinkRowError: empty sku, non-numeric qty or position
    """
    parts = [part.strip() for part in text.split(FIELD_SEPARATOR)]
    if len(parts) > 3:
        raise InvalidLinkRowError(f"Too many fields in link {text!r}", row=text)
    sku = parts[0]
    if not sku:
        raise InvalidLinkRowError(f"Missing sku in link {text!r}", row=text)

    qty: Decimal | None = None
    if len(parts) > 1 and parts[1]:
        qty = coerce_qty(parts[1])
        if qty is None:
            raise InvalidLinkRowError(f"Quantity is not a number in link {text!r}", row=text)

    position: int | None = None
    if len(parts) > 2 and parts[2]:
        try:
            position = int(parts[2])
        except ValueError:
            raise InvalidLinkRowError(f"Position is not an integer in link {text!r}", row=text) from None

    return EncodedLink(sku=sku, qty=qty, position=position)


def decode_links(field: str | None) -> list[Result[EncodedLink]]:
    """Split a field into per-triple results; blank pieces are ignored."""
    if not field or not field.strip():
        return []
    results: list[Result[EncodedLink]] = []
    for piece in field.split(LINK_SEPARATOR):
        if not piece.strip():
            continue
        try:
            results.append(Ok(decode_link(piece)))
        except InvalidLinkRowError as e:
            results.append(Err(e))
    return results


def linked_skus(field: str | None) -> list[str]:
    """Linked skus named in a field, malformed triples included."""
    if not field:
        return []
    skus = (piece.split(FIELD_SEPARATOR, 1)[0].strip() for piece in field.split(LINK_SEPARATOR))
    return [sku for sku in skus if sku]


def links_from_field(
    source_sku: str,
    field: str | None,
    known_ids: Mapping[str, int],
    kind: LinkKind = PARTLISTS,
) -> list[Result[ProductLink]]:
    """Decode a field into ProductLinks owned by ``source_sku``.

    ``known_ids`` maps every sku that exists in the catalog to its id;
    triples naming any other sku become ``Err(InvalidLinkRowError)``.
    """
    results: list[Result[ProductLink]] = []
    for decoded in decode_links(field):
        match decoded:
            case Err():
                results.append(decoded)
            case Ok(link):
                linked_id = known_ids.get(link.sku)
                if linked_id is None:
                    results.append(
                        Err(
                            InvalidLinkRowError(
                                f"Unknown linked sku {link.sku!r}", row=link.encode()
                            ).with_context(link_kind=kind.code, operation="import")
                        )
                    )
                    continue
                results.append(
                    Ok(
                        ProductLink(
                            sku=source_sku,
                            link_type=kind.code,
                            linked_product_sku=link.sku,
                            position=link.position or 0,
                            qty=link.qty,
                            linked_product_id=linked_id,
                        )
                    )
                )
    return results


def write_export_csv(
    rows: Sequence[tuple[str, str]],
    out: IO[str],
    kind: LinkKind = PARTLISTS,
) -> int:
    """Write ``sku,<column>`` rows of encoded fields; empty fields are skipped.

    Returns:
        Number of product rows written
    """
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow([SKU_COLUMN, kind.csv_column])
    written = 0
    for sku, field in rows:
        if field:
            writer.writerow([sku, field])
            written += 1
    return written


def export_csv_text(rows: Sequence[tuple[str, str]], kind: LinkKind = PARTLISTS) -> str:
    buffer = io.StringIO()
    write_export_csv(rows, buffer, kind)
    return buffer.getvalue()


def read_import_csv(source: IO[str], kind: LinkKind = PARTLISTS) -> list[tuple[str, str | None]]:
    """Read ``(sku, field)`` pairs from an import file.

    The field is ``None`` when the file has no column for ``kind``.

    Raises:
        InvalidLinkRowError: the file has no ``sku`` column
    """
    reader = csv.DictReader(source)
    if reader.fieldnames is None or SKU_COLUMN not in reader.fieldnames:
        raise InvalidLinkRowError(f"Import file has no {SKU_COLUMN!r} column")
    pairs: list[tuple[str, str | None]] = []
    for row in reader:
        sku = (row.get(SKU_COLUMN) or "").strip()
        if not sku:
            continue
        pairs.append((sku, row.get(kind.csv_column)))
    return pairs
