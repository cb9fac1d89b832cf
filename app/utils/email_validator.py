# app/utils/email_validator.py
import re
import logging
from typing import Tuple

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

DISPOSABLE_DOMAINS = {
    'tempmail.com', '10minutemail.com', 'guerrillamail.com',
    'mailinator.com', 'yopmail.com', 'throwawaymail.com',
    'fakeinbox.com', 'trashmail.com', 'getairmail.com',
    'dispostable.com', 'maildrop.cc'
}

COMMON_TYPOS = {
    'gmial.com': 'gmail.com',
    'gmal.com': 'gmail.com',
    'gmail.cm': 'gmail.com',
    'gmail.con': 'gmail.com',
    'gmai.com': 'gmail.com',
    'gamil.com': 'gmail.com',
    'yaho.com': 'yahoo.com',
    'yahoo.cm': 'yahoo.com',
    'hotmal.com': 'hotmail.com',
    'outlok.com': 'outlook.com',
}


class EmailValidator:
    """Syntax checks run before a code is issued or verified"""

    @staticmethod
    def is_valid_format(email: str) -> Tuple[bool, str]:
        """
        Validate email format using regex
        Returns: (is_valid, error_message)
        """
        if not email or not isinstance(email, str):
            return False, "Email is required"

        email = email.strip().lower()

        if not EMAIL_PATTERN.match(email):
            return False, "Invalid email format"

        domain = email.split('@')[1]
        if domain in DISPOSABLE_DOMAINS:
            return False, "Disposable email addresses are not allowed"

        if domain in COMMON_TYPOS:
            logger.warning(f"Possible email typo: @{domain}, did you mean @{COMMON_TYPOS[domain]}?")

        return True, "Email format is valid"
