# =============================================================================
# Models Package — Domain Types and Pydantic V2 Schemas
# =============================================================================
#   - domain.py: frozen dataclasses and enums the engine works with
#     (Category, Question, PolicyDocument, MatchVerdict, SearchResult)
#   - requests.py / responses.py: the public API contract
#
# These are SEPARATE from the database models (app/db/models.py), so the
# stored schema and the API can evolve independently.
# =============================================================================
