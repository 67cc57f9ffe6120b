"""AI Grader - AI-assisted code review for JavaScript and TypeScript projects."""

__version__ = "0.1.0"
