"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when strict output contracts are broken."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"


class ExtractionError(PipelineError):
    """Base class for recoverable per-block and per-row source problems."""

    error_code = "EXTRACTION_ERROR"


class StructuralMismatchError(ExtractionError):
    """A label has no adjacent sibling holding a qualifying table."""

    error_code = "STRUCTURAL_MISMATCH"


class DateParseError(ExtractionError):
    error_code = "DATE_PARSE_ERROR"


class SchemaError(ExtractionError):
    """A table carries none of the known case-count columns."""

    error_code = "SCHEMA_ERROR"


class ValueParseError(ExtractionError):
    error_code = "VALUE_PARSE_ERROR"


class SchemaCollapseError(StageError):
    """Raised when most tables in a document fail schema resolution."""

    error_code = "SCHEMA_COLLAPSE"
