import logging
import json
import re


class GDPRJsonFormatter(logging.Formatter):
    """
    Structured JSON logging with PII masking.
    Customer phone numbers, delivery addresses and credentials never reach the log sink in clear text.
    """

    SENSITIVE_PATTERNS = {
        r'"password":\s*".*?"': '"password": "***MASKED***"',
        r'"token":\s*".*?"': '"token": "***MASKED***"',
        r'"access":\s*".*?"': '"access": "***MASKED***"',
        r'"refresh":\s*".*?"': '"refresh": "***MASKED***"',
        r'"phone":\s*"\+?(\d{2,4})\d{6,}"': r'"phone": "\1******"',
    }

    SENSITIVE_KEYS = {
        'password', 'token', 'access', 'refresh', 'secret', 'key',
        'phone', 'address', 'pickup_address',
    }

    def format(self, record):
        from apps.core.middleware import get_correlation_id

        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "path": record.pathname,
            "line_no": record.lineno,
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id() or "N/A",
        }

        if hasattr(record, "metadata") and isinstance(record.metadata, dict):
            log_record["metadata"] = self._recursive_scrub(record.metadata)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        try:
            json_output = json.dumps(log_record)
        except (TypeError, ValueError):
            log_record["metadata"] = str(getattr(record, "metadata", ""))
            json_output = json.dumps(log_record)

        for pattern, replacement in self.SENSITIVE_PATTERNS.items():
            json_output = re.sub(pattern, replacement, json_output)

        return json_output

    def _recursive_scrub(self, data, depth=0):
        if depth > 10:
            return "[MAX_DEPTH_EXCEEDED]"

        if isinstance(data, dict):
            return {
                k: ("***MASKED***" if str(k).lower() in self.SENSITIVE_KEYS and isinstance(v, (str, int))
                    else self._recursive_scrub(v, depth + 1))
                for k, v in data.items()
            }
        elif isinstance(data, list):
            return [self._recursive_scrub(i, depth + 1) for i in data]

        return data
