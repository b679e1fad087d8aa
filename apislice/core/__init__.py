"""Core filtering, styling and normalization engine."""
