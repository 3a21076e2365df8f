"""Core pagination engine: settings, exceptions, schemas and the engine itself."""
