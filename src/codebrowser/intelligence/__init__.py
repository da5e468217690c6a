"""Code intelligence - go-to-definition and find-references.

Semantic answers come from SCIP indexes; text search fills in when the
index cannot answer.
"""

from codebrowser.intelligence.fallback import FallbackResolver, SearchLocation
from codebrowser.intelligence.models import (
    DefinitionRequest,
    DefinitionResponse,
    Location,
    LookupKind,
    Provenance,
)
from codebrowser.intelligence.scip import (
    IndexLocation,
    SCIPDocument,
    SCIPIndex,
    SCIPOccurrence,
    SCIPParser,
    SemanticIndexStore,
)
from codebrowser.intelligence.service import IntelligenceService
from codebrowser.intelligence.words import word_at

__all__ = [
    "DefinitionRequest",
    "DefinitionResponse",
    "FallbackResolver",
    "IndexLocation",
    "IntelligenceService",
    "Location",
    "LookupKind",
    "Provenance",
    "SCIPDocument",
    "SCIPIndex",
    "SCIPOccurrence",
    "SCIPParser",
    "SearchLocation",
    "SemanticIndexStore",
    "word_at",
]
