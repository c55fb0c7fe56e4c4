"""
Error handling for the Print Sheet Builder.

Provides specific exception types for the failure modes of sheet generation
and error context (details, suggestions) for debugging and user feedback.
"""

from typing import Dict, List, Any


class PrintSheetError(Exception):
    """Base exception for all Print Sheet Builder errors."""

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(PrintSheetError):
    """Raised when user input validation fails."""
    pass


class ConfigurationError(PrintSheetError):
    """Raised when configuration is invalid or missing."""
    pass


class ProcessingError(PrintSheetError):
    """Raised when the sheet pipeline fails."""
    pass


class RenderError(ProcessingError):
    """Raised when composing or encoding the sheet fails."""
    pass


class ImageDecodeError(ProcessingError):
    """Raised when the source photo cannot be decoded into a bitmap."""

    def __init__(self, source: str, reason: str = None):
        super().__init__(
            f"Could not decode photo: {source}",
            details={
                'source': source,
                'reason': reason
            },
            suggestions=[
                "Upload the photo as JPG or PNG",
                "Ensure the file is not truncated or corrupted",
                "Export the cropped photo again and retry"
            ]
        )


class InvalidImageFormatError(ValidationError):
    """Raised when an uploaded file has an unsupported format."""

    def __init__(self, filename: str, allowed: List[str] = None):
        super().__init__(
            f"Invalid image format: {filename}",
            details={
                'filename': filename,
                'allowed_extensions': allowed or []
            },
            suggestions=[
                "Use JPG or PNG images",
                "Convert the file to a supported format"
            ]
        )


class FileTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, filename: str, size_mb: float, limit_mb: float):
        super().__init__(
            f"File too large: {filename} ({size_mb:.1f}MB exceeds {limit_mb:.1f}MB limit)",
            details={
                'filename': filename,
                'size_mb': size_mb,
                'limit_mb': limit_mb
            },
            suggestions=[
                f"Reduce file size to under {limit_mb:.1f}MB",
                "Crop the photo closer to the face before uploading"
            ]
        )


def create_error_recovery_suggestions(error: Exception, context: Dict[str, Any] = None) -> List[str]:
    """Generate contextual recovery suggestions for any error."""
    suggestions = []

    if isinstance(error, PrintSheetError):
        suggestions.extend(error.suggestions)

    if context and context.get('has_photo') is False:
        suggestions.append("Attach a photo to the request")

    # Generic fallback suggestions
    if not suggestions:
        suggestions = [
            "Try uploading the photo again",
            "Pick a different page size or photo standard",
            "Contact support if the problem persists"
        ]

    return suggestions
