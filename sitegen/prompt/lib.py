"""Prompt templates for the structured-content LLM.

Three fixed instructions: the design spec, the four image prompts and the
stock-search keyword compression.
"""

from sitegen.schema import DEFAULT_BUSINESS_TYPE

DESIGN_SYSTEM_PROMPT = (
    "You are an expert web designer. Respond with a single JSON object only."
)
ART_DIRECTOR_SYSTEM_PROMPT = (
    "You are an expert art director. Respond with a single JSON object only."
)


def _business_type(business_type: str) -> str:
    return business_type.strip() or DEFAULT_BUSINESS_TYPE


def build_design_spec_prompt(
    business_name: str, business_type: str, requirements: str
) -> str:
    """Instruction asking for a complete design spec as JSON.

    Args:
        business_name: Name of the business.
        business_type: Business type; empty becomes "General Business".
        requirements: Free-text requirements from the user.

    Returns:
        Prompt text.
    """
    kind = _business_type(business_type)
    return f"""You are an expert web designer. Generate a website design specification for this business:

Business Name: {business_name}
Business Type: {kind}
Requirements: {requirements.strip() or "None given"}

You MUST respond with ONLY a valid JSON object (no markdown, no explanation, no extra text) with this exact structure:
{{
  "primaryColor": "#RRGGBB",
  "secondaryColor": "#RRGGBB",
  "accentColor": "#RRGGBB",
  "heroTitle": "Catchy main headline for {business_name}",
  "heroSubtitle": "Compelling subtitle that describes what they do",
  "sections": ["Home", "About", "Services", "Contact"],
  "features": ["Feature 1", "Feature 2", "Feature 3", "Feature 4", "Feature 5", "Feature 6"],
  "designStyle": "Modern/Minimalist/Bold/etc",
  "fullDescription": "A detailed description of the complete design vision",
  "imagePrompts": {{
    "hero": "A detailed image prompt for the hero section that represents {business_name}",
    "feature1": "Image prompt for the first feature/service section",
    "feature2": "Image prompt for the second feature/service section",
    "feature3": "Image prompt for the third feature/service section"
  }}
}}

IMPORTANT COLOR REQUIREMENTS:
- Choose VIBRANT, BOLD colors that are eye-catching and modern
- Colors must be saturated and energetic (avoid muted or dull tones)
- Text placed over each color must reach a 4.5:1 contrast ratio (WCAG AA)
- Primary color should be bold and represent the brand personality
- Make it specific to a {kind} business
- Create detailed, professional image prompts for each section
"""


def build_image_prompts_prompt(
    business_name: str, business_type: str, description: str
) -> str:
    """Instruction asking for four image prompts (hero + 3 features)."""
    kind = _business_type(business_type)
    return f"""You are an expert art director creating professional, realistic website images for "{business_name}", a {kind} business.

Business Description: {description.strip() or kind}

Generate 4 detailed, professional image prompts optimized for both AI image generation and stock photo searches.

Requirements:
- Each prompt must work as an AI generation prompt AND as a stock photo search query
- Include descriptive keywords that will find good stock photos
- Focus on professional photography, business scenarios and realistic settings
- Include lighting, mood and composition details
- Make each image distinct and relevant to the business
- Each prompt 30-50 words, clear and specific

Create prompts for:
1. HERO: Professional hero/banner image for the main landing page
2. FEATURE 1: Image for the first key service/feature
3. FEATURE 2: Image for the second key service/feature
4. FEATURE 3: Image for the third key service/feature

Respond with ONLY valid JSON:
{{
  "hero": "Full detailed prompt...",
  "feature1": "Full detailed prompt...",
  "feature2": "Full detailed prompt...",
  "feature3": "Full detailed prompt..."
}}
"""


def build_search_terms_prompt(image_prompt: str) -> str:
    """Instruction compressing an image prompt into 1-2 search terms."""
    return f"""Convert this image description into 1-2 specific stock photo search terms that will find real, professional photos:
"{image_prompt}"

Requirements:
- Use only 1-2 simple words or short phrases
- Focus on the main visual element
- No descriptions, just search terms

Example: "modern office" or "team meeting"

Respond with ONLY the search terms, nothing else.
"""


__all__ = [
    "ART_DIRECTOR_SYSTEM_PROMPT",
    "DESIGN_SYSTEM_PROMPT",
    "build_design_spec_prompt",
    "build_image_prompts_prompt",
    "build_search_terms_prompt",
]
