"""VeriCite exception hierarchy."""


class VericiteError(Exception):
    """Base class for all VeriCite errors."""


class ConfigurationError(VericiteError):
    """Settings are missing or invalid (e.g. no Gemini API key)."""


class VerificationFailed(VericiteError):
    """The verification request could not be completed as a whole."""
