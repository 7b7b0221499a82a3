"""
Services Layer

Pure business logic services that:
- Accept domain inputs (IDs, sessions, team id lists)
- Return domain outputs (models, dataclasses, dicts)
- Do NOT depend on HTTP request/response objects
- Raise typed domain errors; routes translate them to HTTP status codes
"""

# Importing the services layer subscribes bracket progression to MatchCompleted
from draw_engine.services import bracket_progression  # noqa: F401
