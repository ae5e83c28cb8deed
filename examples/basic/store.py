"""In-memory user storage shared by the user endpoints.

Lives beside main.py so entry files can import it from the working directory.
"""

users_db: dict[str, dict[str, str]] = {}
