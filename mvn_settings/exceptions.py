"""Custom exception hierarchy for the Maven settings provider.

This module defines a structured exception hierarchy that enables
precise error handling and user-friendly error messages throughout
the settings provider. No exception message ever carries a secret value:
only template ids, credential ids and credential references are included.

Exception Hierarchy:
    MvnSettingsError (base)
    ├── ConfigurationError
    ├── TemplateError
    │   ├── TemplateNotFoundError
    │   └── MalformedTemplateError
    ├── CredentialError
    │   ├── CredentialNotFoundError
    │   ├── CredentialFormatError
    │   ├── BackendNotAvailableError
    │   └── UnsupportedCredentialError
    ├── SecretFileWriteError
    └── SettingsInjectionError

Example Usage:
    >>> from mvn_settings.exceptions import ConfigurationError
    >>> try:
    ...     load_config(path)
    ... except FileNotFoundError as e:
    ...     raise ConfigurationError(f"Config file not found: {path}") from e
"""


class MvnSettingsError(Exception):
    """Base exception for all settings provider errors.

    All custom exceptions inherit from this base class, allowing callers
    to catch every provider-specific error with a single except clause.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(MvnSettingsError):
    """Configuration-related errors.

    Raised when configuration files are invalid, missing, or contain
    incompatible settings.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Missing required fields for a credential kind
        - Duplicate template or credential ids
    """

    pass


class TemplateError(MvnSettingsError):
    """Settings template errors.

    Attributes:
        template_id: Id of the template involved, when known
    """

    def __init__(self, message: str, template_id: str | None = None) -> None:
        self.template_id = template_id
        super().__init__(message)


class TemplateNotFoundError(TemplateError):
    """A configured template id does not resolve to a template."""

    pass


class MalformedTemplateError(TemplateError):
    """The settings template cannot be parsed as XML.

    Only the parser position is reported; the document content is never
    part of the message since it may already hold secrets.

    Attributes:
        line: 1-based line of the parse error, when known
        column: 0-based column of the parse error, when known
    """

    def __init__(
        self,
        message: str,
        template_id: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message, template_id=template_id)


class CredentialError(MvnSettingsError):
    """Credential-related errors.

    Raised when credentials cannot be looked up, resolved or materialized.

    This is the base class for credential-specific errors. Subclasses:
    - CredentialNotFoundError: Credential reference doesn't exist
    - CredentialFormatError: Invalid credential reference or data format
    - BackendNotAvailableError: Secret backend unavailable
    - UnsupportedCredentialError: Credential kind cannot be materialized

    Attributes:
        message: Human-readable error description
        reference: The credential id or reference that failed (never its value)
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            reference: The credential id or reference that failed
            suggestion: Optional suggestion for resolution
        """
        self.reference = reference
        self.suggestion = suggestion

        full_message = message
        if reference:
            full_message = f"{message} (reference: {reference})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # Preserve original message (super sets self.message to full_message)
        self.message = message


class CredentialNotFoundError(CredentialError):
    """Credential reference does not resolve in its backend."""

    pass


class CredentialFormatError(CredentialError):
    """Credential reference or credential data has an invalid format."""

    pass


class BackendNotAvailableError(CredentialError):
    """Requested backend is not available on this system."""

    pass


class UnsupportedCredentialError(CredentialError):
    """Credential kind cannot be turned into Maven server authentication."""

    pass


class SecretFileWriteError(MvnSettingsError):
    """Writing materialized key material to disk failed.

    Attributes:
        credentials_id: Id of the credential whose material could not be written
    """

    def __init__(self, message: str, credentials_id: str | None = None) -> None:
        self.credentials_id = credentials_id
        if credentials_id:
            message = f"{message} (credentials: {credentials_id})"
        super().__init__(message)


class SettingsInjectionError(MvnSettingsError):
    """Unexpected failure while injecting credentials into a settings file.

    Attributes:
        template_id: Id of the settings template being processed
        execution_id: Id of the execution context the settings were built for
    """

    def __init__(self, message: str, template_id: str, execution_id: str) -> None:
        self.template_id = template_id
        self.execution_id = execution_id
        super().__init__(f"{message} for maven settings file '{template_id}' during '{execution_id}'")
