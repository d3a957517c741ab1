"""
MessageScrubber - free-text PII scrubbing for log messages.

Key-based redaction only sees attribute keys. A secret interpolated into
the message text itself ("login failed for john@example.com") needs a
content detector instead; this wraps scrubadub's built-in detectors
(emails, phone numbers, URLs with credentials, ...).
"""

import logging
from typing import Optional

import scrubadub

logger = logging.getLogger(__name__)


class MessageScrubber:
    """
    Replace PII found in free text with scrubadub placeholders.

    Example:
        scrubber = MessageScrubber()
        scrubber.scrub("Contact: john.doe@example.com")
        # "Contact: {{EMAIL}}"
    """

    def __init__(self, detectors: Optional[list] = None):
        """
        Args:
            detectors: Extra scrubadub Detector classes or instances to add
                       on top of the defaults.
        """
        self._scrubber = scrubadub.Scrubber()
        for detector in detectors or []:
            self._scrubber.add_detector(detector)

    def scrub(self, text: str) -> str:
        if not text:
            return text
        try:
            return self._scrubber.clean(text)
        except Exception as e:
            logger.warning(f"Scrubadub error (message left as is): {e}")
            return text
