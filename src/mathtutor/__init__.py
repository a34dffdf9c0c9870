"""Math tutoring assistant: AI chat client and lesson progress tracking."""

__version__ = "0.1.0"
