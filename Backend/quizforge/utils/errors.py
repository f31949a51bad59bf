"""Error taxonomy for the extraction and synthesis pipeline."""


class QuizForgeError(Exception):
    """Base class for every error raised by the pipeline itself."""


class UnsupportedFormatError(QuizForgeError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file format: {extension or '<none>'}")


class ExtractionError(QuizForgeError):
    """An adapter could not read the document (corrupt container, IO failure)."""

    def __init__(self, format: str, cause):
        self.format = format
        self.cause = cause
        super().__init__(f"Failed to extract text from {format}: {cause}")


class SynthesisError(QuizForgeError):
    """Every repair and fallback stage failed; carries the raw reply."""

    def __init__(self, raw_reply: str, message: str = "Failed to parse quiz response"):
        self.raw_reply = raw_reply
        super().__init__(message)


class CompletionError(QuizForgeError):
    """The completion client is not usable (e.g. missing API key)."""
