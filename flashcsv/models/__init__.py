"""Domain models for the flashcard CSV importer.

Pipeline values (RawTable, FieldMapping, ImportOptions, ValidationResult),
deck references, storage records and run bookkeeping.
"""

from .deck_ref import DeckByName, DeckRef, ExistingDeck, NoDeck
from .error_record import ErrorRecord
from .mapping import CanonicalField, FieldMapping
from .options import ImportOptions
from .processing_result import CsvFile, FileStat, FileStatus, ProcessingResult
from .store import Card, CardDraft, Deck, StorageCollaborator
from .table import DelimiterName, RawRow, RawTable
from .validation import PREVIEW_LIMIT, ErrorRow, ValidationResult, ValidRow

__all__ = [
    # Parsing
    "DelimiterName",
    "RawRow",
    "RawTable",
    # Mapping / options
    "CanonicalField",
    "FieldMapping",
    "ImportOptions",
    # Validation
    "DeckByName",
    "DeckRef",
    "ExistingDeck",
    "NoDeck",
    "ErrorRow",
    "PREVIEW_LIMIT",
    "ValidRow",
    "ValidationResult",
    # Storage
    "Card",
    "CardDraft",
    "Deck",
    "StorageCollaborator",
    # Run bookkeeping
    "CsvFile",
    "ErrorRecord",
    "FileStat",
    "FileStatus",
    "ProcessingResult",
]
