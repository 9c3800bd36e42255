from __future__ import annotations


class VendorScoutError(Exception):
    """Base class for vendor research failures."""


class ConfigurationError(VendorScoutError):
    """Required credentials or settings are missing."""

    def __init__(self, missing: list[str], message: str | None = None):
        self.missing = list(missing)
        super().__init__(message or f"Missing environment variables: {', '.join(self.missing)}")


class ResearchProviderError(VendorScoutError):
    """The research capability was unreachable or answered with an error."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider} research failed: {message}")


class ExtractionError(VendorScoutError):
    """Schema-constrained extraction produced no usable payload."""


class StoreError(VendorScoutError):
    """A persistence call returned an error."""

    def __init__(self, operation: str, table: str, message: str):
        self.operation = operation
        self.table = table
        super().__init__(f"{operation} on {table} failed: {message}")


class InsertFailedError(StoreError):
    """Vendor rows could not be inserted."""
