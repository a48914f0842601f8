"""Logging configuration with API key redaction."""
import logging
import re


class APIKeyRedactionFilter(logging.Filter):
    """Filter to redact Gemini API keys from logs.

    Keys arrive in request bodies and end up in URLs built by the Gemini
    client, so both the bare key and ``key=`` query parameters are masked.
    """

    SENSITIVE_PATTERNS = [
        (r'AIza[0-9A-Za-z_-]{35}', '[GEMINI_KEY_REDACTED]'),
        (r'([?&]key=)[^&\s"\']+', r'\1[REDACTED]'),
        (r'api[_-]?key["\']?\s*[:=]\s*["\']?[A-Za-z0-9_-]{16,}', 'api_key=[REDACTED]'),
    ]

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = self._redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            else:
                record.args = tuple(
                    self._redact(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )
        return True

    def _redact(self, message):
        """Redact sensitive patterns from a message string."""
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            message = re.sub(pattern, replacement, message)
        return message


def setup_logging(level="INFO"):
    """Configure logging with API key redaction."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )

    redaction = APIKeyRedactionFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.addFilter(redaction)
    root_logger.addFilter(redaction)

    # The Gemini client and httpx log request URLs
    for name in ("httpx", "google", "uvicorn.access"):
        logging.getLogger(name).addFilter(redaction)

    return root_logger
