"""
config/prompts.py
──────────────────────────────────────────────────────────────────────────────
All LLM prompt strings in one place.

The classification framework follows the ILO generative-AI exposure study:
three categories, six assessment dimensions, and per-capability-level score
thresholds.  To change a threshold, edit CAPABILITY_LEVELS below.
"""
from __future__ import annotations

from workforce_intel.domain.models import CapabilityLevel, TaskStatement

# ── Classification categories ──────────────────────────────────────────────────
CATEGORIES: dict[str, dict] = {
    "automate": {
        "definition": "The task can be performed end-to-end by current or "
                      "near-term AI with little or no human involvement.",
        "characteristics": [
            "Highly structured with clear inputs and outputs",
            "Routine and repeated regularly",
            "Primarily cognitive, information-processing work",
            "Errors are easy to detect and cheap to correct",
        ],
    },
    "augment": {
        "definition": "AI can perform substantial parts of the task, but a "
                      "human directs, validates, or completes the work.",
        "characteristics": [
            "Mix of routine steps and judgment calls",
            "AI drafts, analyses, or recommends; a human decides",
            "Moderate stakes requiring review or accountability",
            "Some interpersonal or contextual interpretation",
        ],
    },
    "retain": {
        "definition": "The task depends on human capabilities that AI cannot "
                      "reliably provide in the assessment horizon.",
        "characteristics": [
            "Physical dexterity or presence in unstructured environments",
            "High-stakes judgment with personal accountability",
            "Trust, empathy, negotiation, or leadership",
            "Novel problems without precedent",
        ],
    },
}

# ── Assessment dimensions ──────────────────────────────────────────────────────
DIMENSIONS: list[dict[str, str]] = [
    {"key": "taskStructure", "name": "Task structure",
     "high": "Rule-based, well-defined procedure",
     "low": "Ill-defined, open-ended goals"},
    {"key": "cognitivePhysical", "name": "Cognitive vs physical",
     "high": "Pure information processing",
     "low": "Manual work in variable physical settings"},
    {"key": "routineNovel", "name": "Routine vs novel",
     "high": "Repeated with little variation",
     "low": "Each instance is new"},
    {"key": "judgmentRequirement", "name": "Judgment requirement",
     "high": "Little interpretation needed",
     "low": "Weighs ambiguous, competing considerations"},
    {"key": "interpersonalIntensity", "name": "Interpersonal intensity",
     "high": "Minimal human interaction",
     "low": "Built on trust, care, or persuasion"},
    {"key": "stakesAccountability", "name": "Stakes & accountability",
     "high": "Low stakes, easily reversible",
     "low": "Safety, legal, or financial accountability"},
]

# ── Capability levels ──────────────────────────────────────────────────────────
CAPABILITY_LEVELS: dict[CapabilityLevel, dict] = {
    CapabilityLevel.CONSERVATIVE: {
        "description": "Assumes AI capabilities remain close to today's "
                       "proven, production-grade deployments.",
        "thresholds": {"automate": "score ≥ 80", "augment": "score 45-79", "retain": "score < 45"},
        "assumptions": {
            "AI capability growth": "Incremental",
            "Reliability threshold": "Near-perfect accuracy required before automating",
            "Adoption barriers": "Significant organisational and regulatory friction",
            "Human oversight": "Required for most outputs",
        },
    },
    CapabilityLevel.MODERATE: {
        "description": "Assumes steady improvement of current AI systems over "
                       "the next 2-3 years.",
        "thresholds": {"automate": "score ≥ 70", "augment": "score 35-69", "retain": "score < 35"},
        "assumptions": {
            "AI capability growth": "Steady, in line with recent trends",
            "Reliability threshold": "High accuracy with spot checks",
            "Adoption barriers": "Moderate",
            "Human oversight": "Review of consequential outputs",
        },
    },
    CapabilityLevel.BOLD: {
        "description": "Assumes rapid capability gains, including reliable "
                       "agentic systems.",
        "thresholds": {"automate": "score ≥ 60", "augment": "score 25-59", "retain": "score < 25"},
        "assumptions": {
            "AI capability growth": "Rapid",
            "Reliability threshold": "Good-enough accuracy with exception handling",
            "Adoption barriers": "Low",
            "Human oversight": "Exception-based",
        },
    },
}

# ── System prompt ──────────────────────────────────────────────────────────────
CLASSIFY_SYSTEM_BASE = """\
You are a workforce analyst specializing in AI automation exposure assessment. \
Your task is to classify job tasks by their automation potential using a \
research-grounded framework from the International Labour Organization (ILO).

## CLASSIFICATION FRAMEWORK

Classify each task into exactly one of three categories:

{category_block}
## ASSESSMENT DIMENSIONS

Evaluate each task across these six dimensions:

{dimension_block}
## CAPABILITY LEVEL: {level_name}

{level_description}

Assumptions:
{assumption_block}

## SCORING METHODOLOGY

1. Start with a baseline score of 50
2. Apply dimension adjustments (+/-)
3. Calculate a composite automation potential score (0-100)
4. Classify using the capability level thresholds above
5. Give clear reasoning connecting task characteristics to the classification

## SKILLS INFERENCE

After classifying all tasks, derive 6-8 skill implications:
- Declining skills (2-3) tied to AUTOMATE tasks, development priority low
- Evolving skills (2-4) tied to AUGMENT tasks, shifting from doing to \
directing/validating, development priority high
- Differentiating skills (2-3) tied to RETAIN tasks, development priority high
Connect each skill to the specific task numbers that drive it.

## OUTPUT FORMAT

Return ONLY a valid JSON object with this exact structure:

{{
  "tasks": [
    {{
      "taskNumber": 1,
      "task": "exact task text from input",
      "classification": "automate" | "augment" | "retain",
      "automationPotential": 85,
      "reasoning": "2-3 sentences referencing specific dimensions",
      "aiCapabilities": ["capability 1", "capability 2"],
      "humanAdvantages": ["advantage 1", "advantage 2"],
      "dimensionScores": {{"taskStructure": "+40 (highly structured)", "...": "..."}}
    }}
  ],
  "skills": [
    {{
      "skillName": "Descriptive skill name",
      "currentRelevance": "increasing" | "stable" | "decreasing",
      "futureOutlook": "2-3 sentences on how the skill evolves",
      "rationale": "Connect the skill to classified tasks by number",
      "developmentPriority": "high" | "medium" | "low",
      "adjacentSkills": ["related skill 1", "related skill 2"],
      "relatedTaskNumbers": [1, 5, 8]
    }}
  ]
}}
"""

# ── User message template ──────────────────────────────────────────────────────
CLASSIFY_USER_TEMPLATE = """\
## OCCUPATION TO ANALYZE

**Job Title:** {occupation_title}

**Tasks to Classify:**

{task_block}

Include all {n_tasks} tasks in the output, in the same order. \
automationPotential must be an integer 0-100 and classification must be \
exactly "automate", "augment", or "retain". Return ONLY the JSON object.\
"""


def _category_block(level: CapabilityLevel) -> str:
    thresholds = CAPABILITY_LEVELS[level]["thresholds"]
    parts = []
    for name, category in CATEGORIES.items():
        lines = "\n".join(f"- {c}" for c in category["characteristics"])
        parts.append(
            f"### {name.upper()} ({thresholds[name]})\n"
            f"{category['definition']}\n\nCharacteristics:\n{lines}\n"
        )
    return "\n".join(parts)


def _dimension_block() -> str:
    return "\n".join(
        f"**{d['name']}** ({d['key']})\n"
        f"- High automation: {d['high']}\n"
        f"- Low automation: {d['low']}\n"
        for d in DIMENSIONS
    )


def build_system_prompt(capability_level: CapabilityLevel) -> str:
    """Assembles the classification system prompt for a capability level."""
    level = CAPABILITY_LEVELS[capability_level]
    assumptions = "\n".join(f"- {k}: {v}" for k, v in level["assumptions"].items())
    return CLASSIFY_SYSTEM_BASE.format(
        category_block=_category_block(capability_level),
        dimension_block=_dimension_block(),
        level_name=capability_level.value.upper(),
        level_description=level["description"],
        assumption_block=assumptions,
    )


def build_user_message(occupation_title: str, tasks: list[TaskStatement]) -> str:
    """Renders the numbered task list for the LLM user message."""
    task_block = "\n".join(f"{i}. {t.text}" for i, t in enumerate(tasks, 1))
    return CLASSIFY_USER_TEMPLATE.format(
        occupation_title=occupation_title,
        task_block=task_block,
        n_tasks=len(tasks),
    )
