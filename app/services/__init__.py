# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Contains the building blocks the agents and the API are composed from:
#   - llm.py: Multi-provider LLM abstraction (OpenAI-compatible, Anthropic)
#   - corpus.py: Policy corpus store protocol + PostgreSQL implementation
#   - evidence_cache.py: TTL cache of per-document verdicts
#   - pages.py: "Page N of M" page segmentation
#   - parser.py: PDF parsing with Docling (table-aware extraction)
#   - chunker.py: Token-window splitting for question extraction
#   - questions.py: LLM question extraction from audit submissions
#   - ingest.py: Policy PDF directory → policy_documents table
# =============================================================================
