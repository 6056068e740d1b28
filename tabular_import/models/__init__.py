"""Domain models for the bulk tabular import pipeline.

This package contains the domain model classes shared by the parser,
validator, submitter and aggregator.
"""

from .config_models import (
    ApiConfig,
    DatabaseConfig,
    ImportConfig,
    KindConfig,
    SubmissionConfig,
    ValidationConfig,
)
from .processing_result import ImportOutcome, ImportRun, ImportSummary
from .raw_row import RawRow
from .records import BatchRecord, CourseRecord, ImportRecord, ParticipantRecord, SubjectGroup
from .reference import ReferenceEntity
from .validation_result import ValidationResult

__all__ = [
    # Configuration models
    "ApiConfig",
    "DatabaseConfig",
    "ImportConfig",
    "KindConfig",
    "SubmissionConfig",
    "ValidationConfig",
    # Row models
    "RawRow",
    "ImportRecord",
    "BatchRecord",
    "CourseRecord",
    "SubjectGroup",
    "ParticipantRecord",
    "ReferenceEntity",
    # Result models
    "ValidationResult",
    "ImportOutcome",
    "ImportSummary",
    "ImportRun",
]
