import re

# Maximum length of the free-form user description
DESCRIPTION_MAX_LENGTH = 500

# Validates a strong password with at least one lowercase letter, one uppercase letter,
# one digit, one special character, and a minimum length of 8 characters
# Example: "Passw0rd!"
STRONG_PASSWORD_VALIDATOR = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)
