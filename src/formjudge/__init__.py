"""formjudge: mirror server-declared validation rules into form fields."""

__version__ = "0.1.0"
