"""Keep secrets in an encrypted credential store and export them to .env files."""
