"""Reconcile two checksum stores into the list of differing file names."""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass
from pathlib import Path

from dumpdiff.core.checksums import CSV_ENCODING, CSV_ERRORS, ChecksumStore, CsvRowWriter
from dumpdiff.core.errors import FileUnreadable, OutputWriteFailure

REPORT_NAME = "diff.csv"
HEADER_NAME = "File Name"


@dataclass(frozen=True)
class ReconciliationRecord:
    name: str
    digest_a: str = ""  # empty when the file is absent from side A
    digest_b: str = ""


def reconcile(store_a: ChecksumStore, store_b: ChecksumStore) -> list[ReconciliationRecord]:
    """Return records for every name whose digests differ, byte-sorted by name."""
    names = sorted(store_a.names() | store_b.names(), key=os.fsencode)
    records = []
    for name in names:
        digest_a = store_a.get(name)
        digest_b = store_b.get(name)
        if digest_a != digest_b:
            records.append(ReconciliationRecord(name, digest_a, digest_b))
    return records


def report_header(label_a: str, label_b: str) -> list[str]:
    return [HEADER_NAME, f"Checksum {label_a}", f"Checksum {label_b}"]


def write_report(
    records: list[ReconciliationRecord], path: Path, label_a: str, label_b: str
) -> Path:
    """Write the reconciliation report: a header row then one row per record."""
    try:
        with open(path, "w", encoding=CSV_ENCODING, errors=CSV_ERRORS, newline="") as fh:
            writer = CsvRowWriter(fh)
            writer.writerow(report_header(label_a, label_b))
            for record in records:
                writer.writerow([record.name, record.digest_a, record.digest_b])
    except OSError as e:
        raise OutputWriteFailure(path, "write report", e.strerror or str(e)) from e
    return path


def read_report(path: Path) -> list[ReconciliationRecord]:
    """Read records back from a report written by write_report."""
    try:
        with open(path, encoding=CSV_ENCODING, errors=CSV_ERRORS, newline="") as fh:
            rows = list(csv.reader(fh))
    except OSError as e:
        raise FileUnreadable(path, "read report", e.strerror or str(e)) from e
    except csv.Error as e:
        raise FileUnreadable(path, "read report", str(e)) from e

    if not rows or not rows[0] or rows[0][0] != HEADER_NAME:
        raise FileUnreadable(path, "read report", "missing header row")

    records = []
    for line_no, row in enumerate(rows[1:], 2):
        if len(row) != 3 or not row[0]:
            raise FileUnreadable(path, "read report", f"row {line_no} is malformed")
        records.append(ReconciliationRecord(*row))
    return records
