# =============================================================================
# Agents Package — Evidence Retrieval Engine
# =============================================================================
# LLM-driven steps of the engine, leaf-first:
#   - router.py: Category Router — picks 1-3 policy categories per question
#   - matcher.py: Document Matcher — page-by-page evaluation of one policy
#   - scanner.py: Corpus Scanner — parallel batches, ordered resolution
#   - orchestrator.py: LangGraph per-question graph (route → fetch → scan)
#     and EvidenceEngine, which runs it for every question of a submission
# =============================================================================
