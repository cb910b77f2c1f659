"""Content views rendered inside the app shell."""
