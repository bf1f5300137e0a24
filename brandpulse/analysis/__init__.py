"""Brand analysis engine.

Per-question pipeline driven by the run orchestrator:
  1. Generation pass (generation model answers the question)
  2. Analysis pass (cheaper model extracts brand mentions as JSON)
  3. Tolerant JSON extraction + validation
  4. Consolidation across questions (target vs competitor, generic vs specific)

Input:  list[Question] + RunConfiguration
Output: AnalysisResult
"""
