"""Error taxonomy for document analysis.

Every failure that ends a job is mapped to one ``ErrorCategory`` with a
user-facing message and a suggested action. Those strings are surfaced
verbatim to the polling client; raw exception text never is, except for the
truncated message of the ``unknown`` category.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

UNKNOWN_MESSAGE_LIMIT = 100


class ErrorCategory(str, Enum):
    """Stable error categories exposed to clients."""
    DOWNLOAD = "download"
    NO_TEXT = "no_text"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    NO_PACKAGES = "no_packages"
    UNCLEAR_STRUCTURE = "unclear_structure"
    TIMEOUT = "timeout"
    DATABASE = "database"
    UNKNOWN = "unknown"


class AnalysisError(Exception):
    """Base class for pipeline failures with a known category."""
    category: ErrorCategory = ErrorCategory.UNKNOWN


class DownloadFailed(AnalysisError):
    """Document could not be downloaded (status, timeout, empty body, size)."""
    category = ErrorCategory.DOWNLOAD


class NoExtractableText(AnalysisError):
    """Document has no pages or too little text (image-only or corrupt)."""
    category = ErrorCategory.NO_TEXT


class ExtractionTimeout(AnalysisError):
    """Text extraction watchdog or extraction-service call timed out."""
    category = ErrorCategory.TIMEOUT


class RateLimited(AnalysisError):
    """Extraction service kept answering 429 after all retries."""
    category = ErrorCategory.RATE_LIMIT


class ExtractionAPIError(AnalysisError):
    """Extraction service failed with a non-429 error after all retries."""
    category = ErrorCategory.API_ERROR


class MalformedResponse(AnalysisError):
    """Extraction service response body is not a parseable structure."""
    category = ErrorCategory.UNCLEAR_STRUCTURE


class NoPackagesExtracted(AnalysisError):
    """No package survived normalization."""
    category = ErrorCategory.NO_PACKAGES


class PersistenceError(AnalysisError):
    """A database write failed after retries."""
    category = ErrorCategory.DATABASE


class InvalidStatusTransition(AnalysisError):
    """A job status write would violate pending → analyzing → terminal."""
    category = ErrorCategory.DATABASE


class JobNotFound(LookupError):
    """No analysis job with the given id."""


class JobAlreadySubmitted(Exception):
    """Submission for a job that already left ``pending``."""


@dataclass(frozen=True)
class CategorizedError:
    """User-facing description of a failure."""
    category: ErrorCategory
    message: str
    suggested_action: str


_USER_MESSAGES: dict[ErrorCategory, tuple[str, str]] = {
    ErrorCategory.DOWNLOAD: (
        "Unable to download the PDF file",
        "Please ensure the file URL is accessible and try uploading again. "
        "If the file is very large (>10MB), try compressing it first.",
    ),
    ErrorCategory.NO_TEXT: (
        "PDF appears to contain no readable text",
        "Your PDF may be a scanned image or contain only graphics. Try:\n"
        "1. Converting scanned PDFs to text using OCR software\n"
        "2. Ensuring your PDF has selectable text (not just images)\n"
        "3. Using manual entry instead",
    ),
    ErrorCategory.RATE_LIMIT: (
        "AI analysis service is temporarily at capacity",
        "Please wait 30-60 seconds and try again. Peak usage times may require a brief wait.",
    ),
    ErrorCategory.API_ERROR: (
        "AI analysis service is temporarily unavailable",
        "The AI service encountered an issue. Please try again in a few minutes. "
        "If the problem persists, use manual entry.",
    ),
    ErrorCategory.NO_PACKAGES: (
        "Could not identify sponsorship packages in the PDF",
        "Your PDF may not contain clearly labeled package tiers with pricing. "
        "Please ensure your PDF includes:\n"
        "• Package names (Bronze, Silver, Gold, etc.)\n"
        "• Price for each package\n"
        "• List of benefits/placements\n\n"
        "Or use manual entry to create your packages.",
    ),
    ErrorCategory.UNCLEAR_STRUCTURE: (
        "Unable to interpret the PDF structure",
        "The PDF format is unclear or non-standard. Try:\n"
        "1. Using a PDF with clearly labeled sections\n"
        "2. Ensuring package information is in tables or lists\n"
        "3. Using manual entry for better control",
    ),
    ErrorCategory.TIMEOUT: (
        "PDF analysis exceeded the time limit",
        "The PDF may be too large or complex. Try:\n"
        "1. Using a PDF with fewer pages (under 20 pages is ideal)\n"
        "2. Removing unnecessary content/images\n"
        "3. Breaking into multiple smaller offers\n"
        "4. Using manual entry instead",
    ),
    ErrorCategory.DATABASE: (
        "Failed to save the analysis results",
        "A system error occurred while saving. Please try again. If this persists, contact support.",
    ),
}

_UNKNOWN_ACTION = (
    "An unexpected error occurred. Please try:\n"
    "1. Reuploading the PDF\n"
    "2. Using a different PDF format\n"
    "3. Manual entry\n"
    "4. Contacting support if the issue persists"
)


def truncate_message(message: str, limit: int = UNKNOWN_MESSAGE_LIMIT) -> str:
    """Cut a raw message down to ``limit`` characters plus an ellipsis."""
    if len(message) > limit:
        return message[:limit] + "..."
    return message


def categorize_error(exc: BaseException) -> CategorizedError:
    """Map an exception to its category, user message and suggested action."""
    if isinstance(exc, AnalysisError) and exc.category in _USER_MESSAGES:
        message, action = _USER_MESSAGES[exc.category]
        categorized = CategorizedError(exc.category, message, action)
    else:
        raw = str(exc) or exc.__class__.__name__
        categorized = CategorizedError(ErrorCategory.UNKNOWN, truncate_message(raw), _UNKNOWN_ACTION)

    logger.error(
        "[Error Category: %s] %s",
        categorized.category.value,
        categorized.message,
        extra={"error_type": exc.__class__.__name__, "error_detail": str(exc)},
    )
    return categorized
