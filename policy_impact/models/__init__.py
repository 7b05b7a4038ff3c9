"""Models — enums and pydantic schemas for dependency records, graphs and reports."""
