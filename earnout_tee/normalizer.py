"""
Document Normalizer.

Classifies raw document objects into typed ledger entries and computes each
entry's signed contribution to the KPI. Classification is fail-fast: the
first record that matches no variant aborts the whole batch, since a
silently skipped document would corrupt the financial result.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

from pydantic import ValidationError as PydanticValidationError

from .documents import DOCUMENT_VARIANTS, DocumentKind
from .errors import ClassificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedEntry:
    """A classified document and its contribution in minor units."""
    source_index: int
    kind: DocumentKind
    contribution: int


def _summarize(exc: PydanticValidationError, limit: int = 3) -> str:
    parts = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "document"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return ", ".join(parts)


def classify(raw: Any, index: int):
    """
    Decode one raw record into the first document variant that accepts it.

    Variants are tried in ``DOCUMENT_VARIANTS`` order. The first variant
    whose shape keys the record carries decides: if it rejects the record,
    lower-priority variants are not tried.

    Raises:
        ClassificationError: if the deciding variant rejects the record, or
            no variant's shape matches
    """
    if not isinstance(raw, dict):
        raise ClassificationError(index, f"document must be a JSON object, got {type(raw).__name__}")

    for variant in DOCUMENT_VARIANTS:
        if not any(key in raw for key in variant.shape_keys):
            continue
        try:
            return variant.model_validate(raw)
        except PydanticValidationError as e:
            raise ClassificationError(index, f"invalid {variant.kind.value} ({_summarize(e)})") from e

    raise ClassificationError(index, "matches no known document shape")


def normalize(documents: Sequence[Any]) -> List[NormalizedEntry]:
    """
    Classify every document in submission order.

    Returns:
        One NormalizedEntry per document, in the same order

    Raises:
        ClassificationError: on the first document that cannot be classified
    """
    entries = []
    for index, raw in enumerate(documents):
        doc = classify(raw, index)
        entries.append(NormalizedEntry(
            source_index=index,
            kind=doc.kind,
            contribution=doc.contribution(),
        ))
    logger.debug("normalized %d documents", len(entries))
    return entries
