"""Input validation for CLI arguments."""
import re
import sys

ACCOUNT_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_.-]+$')


def validate_secret_name(name: str) -> None:
    """
    Validate an account or env var name given on the command line.

    Allowed: letters, numbers, underscores, hyphens and dots.

    Args:
        name: Secret name to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        sys.exit(2)

    if not ACCOUNT_NAME_PATTERN.match(name):
        print(f"Error: Invalid secret name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_), hyphens (-), dots (.)", file=sys.stderr)
        print("\nExamples of valid names:", file=sys.stderr)
        print("  ✓ openai-api-key", file=sys.stderr)
        print("  ✓ OPENAI_API_KEY", file=sys.stderr)
        print("  ✓ db.password", file=sys.stderr)
        print("\nExamples of invalid names:", file=sys.stderr)
        print("  ✗ my secret (contains space)", file=sys.stderr)
        print("  ✗ key|value (contains |)", file=sys.stderr)
        sys.exit(2)


def validate_secret_value(value: str) -> None:
    """
    Validate secret value is not empty.

    Args:
        value: Secret value to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not value or value.strip() == "":
        print("Error: Empty value - nothing stored.", file=sys.stderr)
        sys.exit(2)
