import logging
import re
import sys

from careercoach.config import settings


_SENSITIVE_KEYS = r'(?:password|passwd|secret|token|api[_-]?key|credentials?|auth)'
_REDACTIONS = [
	(re.compile(rf'({_SENSITIVE_KEYS})\s*[=:]\s*["\']?[^\s"\'&]+["\']?', re.IGNORECASE), r'\1=[REDACTED]'),
	(re.compile(r'Bearer\s+[A-Za-z0-9._-]+'), 'Bearer [REDACTED]'),
	(re.compile(r'AIza[0-9A-Za-z_-]{20,}'), '[REDACTED]'),
	(re.compile(r'gsk_[0-9A-Za-z]{20,}'), '[REDACTED]'),
]


def redact(message: str) -> str:
	"""Remove credential-looking substrings from a message."""
	for pattern, replacement in _REDACTIONS:
		message = pattern.sub(replacement, message)
	return message


class RedactingFilter(logging.Filter):
	def filter(self, record: logging.LogRecord) -> bool:
		record.msg = redact(record.getMessage())
		record.args = None
		return True


def configure_logging() -> None:
	root_logger = logging.getLogger()
	if root_logger.handlers:
		return

	handler = logging.StreamHandler(sys.stdout)
	formatter = logging.Formatter(
		"%(asctime)s | %(levelname)s | %(name)s | %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	handler.setFormatter(formatter)
	handler.addFilter(RedactingFilter())
	root_logger.addHandler(handler)
	root_logger.setLevel(logging.getLevelName(settings.log_level.upper()))
