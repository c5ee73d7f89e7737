# =============================================================================
# Database Package
# =============================================================================
# Provides SQLAlchemy engines, session management, and the ORM model for
# the policy corpus.
#
# Key exports:
#   - async_session_factory: async sessions for the API (corpus reads)
#   - get_sync_session: sync sessions for the ingestion script
#   - PolicyDocumentRecord: ORM model for the policy_documents table
# =============================================================================
