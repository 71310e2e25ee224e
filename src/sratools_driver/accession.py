"""Accession classification used to reject container accessions."""

from __future__ import annotations

import re

from sratools_driver.models import AccessionType

# SRA/ENA/DDBJ archives: <archive>R<kind><digits>[.<version>]
_ACCESSION_RE = re.compile(
    r"^(?P<archive>[SED])R(?P<kind>[APRSX])(?P<number>\d{6,9})(?:\.\d+)?$",
    re.IGNORECASE,
)


def classify_accession(token: str) -> AccessionType:
    """Classify a token as a run, a container (study, sample, ...) or unknown."""

    match = _ACCESSION_RE.match(token.strip())
    if match is None:
        return AccessionType.UNKNOWN
    if match.group("kind").upper() == "R":
        return AccessionType.RUN
    return AccessionType.CONTAINER


def accession_info_url(accession: str) -> str:
    return f"https://www.ncbi.nlm.nih.gov/sra/?term={accession}"
