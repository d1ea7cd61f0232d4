"""
Citation key and BibTeX entry synthesis.

Pure functions of a CanonicalRecord: no I/O, no randomness, so the same
record always yields byte-identical output.
"""

import logging

from .errors import MalformedRecordError
from .models import CanonicalRecord, Citation, Source
from .normalize import ANONYMOUS, clean_for_key, extract_surname, first_significant_word

logger = logging.getLogger(__name__)

ARXIV_JOURNAL = "arXiv"
DEFAULT_JOURNAL = "journal"
DEFAULT_CONFERENCE = "conference"


def _check(record: CanonicalRecord) -> None:
    if not record.title or not record.year:
        raise MalformedRecordError(
            f"Record from {record.source.label} lacks a title or year: {record!r}"
        )


def cite_key(record: CanonicalRecord) -> str:
    """
    Build the citation key: surname + year + first significant title word.

    Example:
        Tong, Alex / 2024 / "Diffusion Models Beat GANs" -> "tong2024diffusion"
    """
    _check(record)
    first_author = record.authors[0] if record.authors else ANONYMOUS
    return (
        f"{clean_for_key(extract_surname(first_author))}"
        f"{record.year}"
        f"{clean_for_key(first_significant_word(record.title))}"
    )


def format_entry(record: CanonicalRecord, key: str) -> str:
    """Render the BibTeX entry for record under key."""
    _check(record)
    lines = [
        f"@article{{{key},",
        f"  title  = {{{record.title}}},",
        f"  author = {{{' and '.join(record.authors)}}},",
        f"  year   = {{{record.year}}},",
    ]

    if record.source == Source.ARXIV:
        lines.append(f"  journal= {{{ARXIV_JOURNAL}}},")
        lines.append(f"  eprint = {{{record.identifier}}}")
    elif record.source == Source.CROSSREF:
        lines.append(f"  journal= {{{record.venue or DEFAULT_JOURNAL}}},")
        lines.append(f"  doi    = {{{record.identifier}}}")
    else:
        lines.append(f"  journal= {{{record.venue or DEFAULT_CONFERENCE}}},")
        if record.identifier.startswith("10."):
            lines.append(f"  doi    = {{{record.identifier}}}")
        else:
            lines.append(f"  url    = {{{record.identifier}}}")

    lines.append("}")
    return "\n".join(lines) + "\n"


def synthesize(record: CanonicalRecord) -> Citation:
    """
    Produce the citation key and BibTeX entry for a selected record.

    Raises:
        MalformedRecordError: If the record has no title or year
    """
    key = cite_key(record)
    logger.debug(f"Synthesized key {key} for {record.source.label} record")
    return Citation(key=key, text=format_entry(record, key))
