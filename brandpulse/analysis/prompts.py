"""Prompt builders for the generation and analysis passes."""

from __future__ import annotations

from brandpulse.analysis.types import ModelPersona, RunConfiguration

# Generation pass: natural answer from the (user-selected) generation model
GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 2000

# Analysis pass: deterministic extraction on the cheaper analysis model
ANALYSIS_TEMPERATURE = 0.1
ANALYSIS_MAX_TOKENS = 2500

# Analysis prompt lists at most this many competitors
MAX_PROMPT_COMPETITORS = 10

PERSONA_INSTRUCTIONS: dict[ModelPersona, str] = {
    ModelPersona.CHATGPT: (
        "Act like ChatGPT: be conversational, balanced and structured. Give practical, "
        "well-organized information in a professional but approachable tone."
    ),
    ModelPersona.CLAUDE: (
        "Act like Claude (Anthropic): be analytical, detailed and careful. Give in-depth "
        "explanations and weigh several perspectives in a thoughtful, precise tone."
    ),
    ModelPersona.GEMINI: (
        "Act like Gemini (Google): be concise, direct and data-oriented. Give factual "
        "information and clear comparisons in an efficient tone."
    ),
    ModelPersona.PERPLEXITY: (
        "Act like Perplexity: be investigative and source-driven. Give up-to-date "
        "information with implicit references in an academic but accessible tone."
    ),
}

PERSONA_TEMPERATURES: dict[ModelPersona, float] = {
    ModelPersona.CHATGPT: 0.7,
    ModelPersona.CLAUDE: 0.5,
    ModelPersona.GEMINI: 0.3,
    ModelPersona.PERPLEXITY: 0.4,
}
DEFAULT_PERSONA_TEMPERATURE = 0.6


def persona_temperature(persona: ModelPersona) -> float:
    return PERSONA_TEMPERATURES.get(persona, DEFAULT_PERSONA_TEMPERATURE)


def build_system_prompt(config: RunConfiguration) -> str:
    return (
        f"You are an expert in {config.industry} {config.country_context}.\n"
        f"Always answer in {config.country_language}.\n"
        "Provide relevant, up-to-date information for that specific market.\n"
        "Mention companies, brands and services that operate in that territory."
    )


def build_analysis_prompt(question: str, generated_content: str, config: RunConfiguration) -> str:
    """Instruct the analysis model to extract mentions from the given text only."""
    competitors = config.competitor_brands[:MAX_PROMPT_COMPETITORS]
    return f"""Analyze the following AI-generated content and identify brand mentions {config.country_context}.

ORIGINAL QUESTION: "{question}"

GEOGRAPHIC CONTEXT: {config.country_context}
LANGUAGE: {config.country_language}

AI-GENERATED CONTENT TO ANALYZE:
\"\"\"
{generated_content}
\"\"\"

BRANDS TO LOOK FOR:
- Target brands: {", ".join(config.target_brands)}
- Competitors: {", ".join(competitors)}

INSTRUCTIONS:
1. Analyze ONLY the AI-generated content above. Never use outside knowledge.
2. Report every target brand or competitor that appears in the content.
3. Judge the context and sentiment of each mention.
4. Count how many times each brand is mentioned.
5. Quote the exact sentences that mention each brand as evidence.

Respond ONLY with valid JSON, with text values in {config.country_language}:
{{
  "summary": "50-100 word summary of the brand mentions in the content",
  "brandMentions": [
    {{
      "brand": "Brand name exactly as listed above",
      "mentioned": true,
      "frequency": 0,
      "context": "positive|negative|neutral",
      "evidence": ["exact quote 1", "exact quote 2"]
    }}
  ],
  "sentiment": "positive|negative|neutral",
  "confidenceScore": 0.0
}}"""


def build_persona_prompt(question: str, persona: ModelPersona, config: RunConfiguration) -> str:
    return f"""{PERSONA_INSTRUCTIONS[persona]}

Answer the following question in a natural and helpful way:

"{question}"

Target brands to consider: {", ".join(config.target_brands)}
Main competitors: {", ".join(config.competitor_brands)}

Give a complete, informative and natural answer of 200-400 words. Mention brands where it is appropriate and useful for the user."""


def build_persona_analysis_prompt(
    question: str,
    generated_content: str,
    persona: ModelPersona,
    config: RunConfiguration,
) -> str:
    return f"""Analyze the following AI answer (written in the style of {persona.value}) for brand mentions and give an advanced contextual analysis.

ORIGINAL QUESTION: "{question}"

AI ANSWER TO ANALYZE:
\"\"\"
{generated_content}
\"\"\"

TARGET BRANDS: {", ".join(config.target_brands)}
COMPETITORS: {", ".join(config.competitor_brands)}

Respond ONLY with valid JSON using exactly this structure:
{{
  "overallSentiment": "very_positive|positive|neutral|negative|very_negative",
  "contextualInsights": "Detailed analysis of the context and overall tone of the answer",
  "brandMentions": [
    {{
      "brand": "Exact brand name",
      "mentioned": true,
      "frequency": 0,
      "context": "positive|negative|neutral",
      "evidence": ["exact quote 1", "exact quote 2"],
      "detailedSentiment": "very_positive|positive|neutral|negative|very_negative",
      "confidence": 0.0
    }}
  ],
  "confidenceScore": 0.0
}}"""
