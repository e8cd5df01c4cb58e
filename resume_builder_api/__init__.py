"""Resume builder API: resume text parsing, AI enhancement and ATS analysis."""

__version__ = "0.1.0"
