# =============================================================================
# Policy Evidence Engine
# =============================================================================
# Answers healthcare compliance audit questions against a corpus of policy
# documents. For each question an LLM selects the relevant policy
# categories, then the category's documents are scanned page by page in
# concurrent batches until one page supports the question with enough
# confidence. The result is met (with a verbatim excerpt), not-met, or
# under-review.
#
# Package structure:
#   app/
#   ├── api/          → FastAPI route handlers (analyze, categories)
#   ├── agents/       → LangGraph pipeline: router → fetch → scanner,
#   │                    page matcher
#   ├── db/           → Database engine, session, and ORM models
#   ├── models/       → Domain types and Pydantic V2 request/response schemas
#   └── services/     → LLM providers, corpus store, cache, parsing,
#                        question extraction, ingestion
# =============================================================================
