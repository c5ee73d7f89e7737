# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - analyze.py: Audit submission analysis (PDF upload or JSON questions)
#     and category listing
# The application itself and GET /health live in app/main.py.
# =============================================================================
