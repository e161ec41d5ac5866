"""Error taxonomy for the ingestion pipeline, each mapped to an HTTP status"""


class IngestError(Exception):
    """Base class for failures reported back to the caller."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(IngestError):
    """Required connection or secret settings are absent."""
    status_code = 500

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing configuration: {', '.join(missing)}")
        self.missing = list(missing)


class AuthorizationError(IngestError):
    """Secret header missing or mismatched. Never carries detail."""
    status_code = 401

    def __init__(self):
        super().__init__("Unauthorized")


class ValidationError(IngestError):
    """Malformed body or missing required fields."""
    status_code = 400

    def __init__(self, message: str, issues: list[dict] | None = None):
        super().__init__(message)
        self.issues = issues or []


class PersistenceError(IngestError):
    """Any failure raised by the document store."""
    status_code = 500
