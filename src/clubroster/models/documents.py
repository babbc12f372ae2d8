"""Validate and coerce raw store documents into typed models."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from clubroster.store.types import Document


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_document(model: Type[ModelT], document: Optional[Document]) -> Optional[ModelT]:
    """Return a validated model, or None (logged) for a malformed document."""

    if document is None:
        return None
    payload = dict(document.data)
    payload["id"] = document.id
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Skipping malformed %s document %s: %s",
            model.__name__,
            document.id,
            "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()),
        )
        return None


def parse_documents(model: Type[ModelT], documents: Iterable[Document]) -> List[ModelT]:
    parsed: List[ModelT] = []
    for document in documents:
        item = parse_document(model, document)
        if item is not None:
            parsed.append(item)
    return parsed
