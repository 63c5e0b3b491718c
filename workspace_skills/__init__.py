"""workspace-skills: Google Workspace and Gemini tools for the command line."""

__version__ = "0.1.0"
