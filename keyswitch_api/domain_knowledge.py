"""Built-in switch domain knowledge.

Templates fill descriptive fields that an answer leaves out: material
sound / feel / durability profiles, typical advantages and drawbacks,
well-known example switches, characteristic categories and query-type cues.
"""

import re
from dataclasses import dataclass, field

# =============================================================================
# Materials
# =============================================================================

# Canonical material name -> alias words (matched as whole words)
MATERIAL_ALIASES: dict[str, tuple[str, ...]] = {
    "POM": ("pom", "polyoxymethylene", "delrin", "acetal"),
    "Nylon": ("nylon", "pa66", "polyamide"),
    "Polycarbonate": ("polycarbonate", "pc"),
    "ABS": ("abs", "acrylonitrile"),
    "PEEK": ("peek",),
    "PTFE": ("ptfe", "teflon"),
    "Aluminum": ("aluminum", "aluminium", "alu"),
    "Brass": ("brass",),
    "Steel": ("steel", "stainless"),
}

# Collocations where an alias is not a housing or stem material:
# "stainless steel springs", "PC gaming", "gaming PC"
NON_MATERIAL_FOLLOWERS = frozenset({"spring", "springs", "gaming", "games"})
NON_MATERIAL_PRECEDERS = frozenset({"gaming"})
FOLLOWER_WINDOW = 2

_WORD = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class MaterialProfile:
    """Reference description of one housing or stem material."""

    sound: str
    feel: str
    durability: str
    advantages: tuple[str, ...]
    disadvantages: tuple[str, ...]
    examples: tuple[tuple[str, str, str], ...] = field(default_factory=tuple)  # name, maker, note


MATERIAL_PROFILES: dict[str, MaterialProfile] = {
    "Polycarbonate": MaterialProfile(
        sound="Bright, higher-pitched sound with a crisp 'clacky' character.",
        feel="Rigid housing that passes tactile bumps and bottom-out through clearly.",
        durability="High impact resistance; keeps its shape and sound over long use.",
        advantages=(
            "Transparent, so RGB lighting shows through",
            "High impact resistance",
            "Crisp, clear sound signature",
            "Precise transmission of tactile feedback",
        ),
        disadvantages=(
            "Can sound sharp or harsh to some users",
            "Costs more than basic plastics",
            "Rigid feel does not suit every preference",
        ),
        examples=(
            ("Gateron Yellow", "Gateron", "PC top housing over a nylon bottom"),
            ("Kailh Box Jade", "Kailh", "PC top housing with a crisp click bar"),
            ("Durock T1", "Durock", "PC top housing for a sharper tactile sound"),
        ),
    ),
    "Nylon": MaterialProfile(
        sound="Deeper, muted sound; the softer plastic damps high frequencies.",
        feel="Slightly cushioned bottom-out that softens each keystroke.",
        durability="Good wear resistance, though contact surfaces can shine with heavy use.",
        advantages=(
            "Deep, 'thocky' sound profile",
            "Comfortable for long typing sessions",
            "Good natural sound dampening",
        ),
        disadvantages=(
            "Opaque, so RGB lighting is dimmer",
            "Can feel less precise than harder plastics",
            "Sound may be too muffled for some users",
        ),
        examples=(
            ("Cherry MX Black", "Cherry", "Classic full nylon housing"),
            ("Gateron Milky Yellow", "Gateron", "Milky nylon housing with a muted sound"),
            ("Gateron Oil King", "Gateron", "Nylon housing tuned for a deep linear sound"),
        ),
    ),
    "ABS": MaterialProfile(
        sound="Moderate pitch that sits between polycarbonate and nylon.",
        feel="Balanced stiffness with clear but unremarkable feedback.",
        durability="Adequate for most users; develops shine faster than premium plastics.",
        advantages=(
            "Inexpensive to manufacture",
            "Balanced sound and feel",
            "Easy to mould into complex shapes",
        ),
        disadvantages=(
            "Lower durability than premium materials",
            "Develops shine relatively quickly",
            "Less distinctive sound",
        ),
    ),
    "POM": MaterialProfile(
        sound="Deep, consistent sound with a rounded 'thock'.",
        feel="Very smooth travel thanks to its self-lubricating surface.",
        durability="Excellent wear resistance and dimensional stability.",
        advantages=(
            "Self-lubricating for smooth travel",
            "Excellent dimensional stability",
            "Outstanding wear resistance",
        ),
        disadvantages=(
            "More expensive than standard plastics",
            "Limited colour options",
            "Harder to manufacture to tight tolerances",
        ),
        examples=(
            ("NovelKeys Cream", "NovelKeys", "Full POM housing and stem"),
            ("Cherry MX Red", "Cherry", "POM stem in a nylon housing"),
        ),
    ),
    "Aluminum": MaterialProfile(
        sound="Bright metallic sound with strong resonance.",
        feel="Completely rigid with no flex or dampening.",
        durability="Practically immune to the wear that affects plastics.",
        advantages=("Premium build quality", "Zero flex", "Very long service life"),
        disadvantages=("Much higher cost", "Can feel harsh", "Often needs extra dampening"),
    ),
    "Brass": MaterialProfile(
        sound="Deep, rich metallic sound with complex harmonics.",
        feel="Heavy and stable, adding heft to each keystroke.",
        durability="Corrosion resistant and extremely long-lived.",
        advantages=("Rich acoustic resonance", "Premium weight", "Exceptional longevity"),
        disadvantages=("Very expensive", "Adds substantial weight", "Develops a patina over time"),
    ),
}


def _is_material_mention(lowered: str, start: int, end: int) -> bool:
    following = _WORD.findall(lowered[end : end + 40])[:FOLLOWER_WINDOW]
    preceding = _WORD.findall(lowered[max(0, start - 20) : start])[-1:]
    return not (
        NON_MATERIAL_FOLLOWERS.intersection(following)
        or NON_MATERIAL_PRECEDERS.intersection(preceding)
    )


def find_materials(text: str) -> list[str]:
    """Canonical materials mentioned in text, ordered by first mention."""
    lowered = text.lower()
    positions: dict[str, int] = {}
    for material, aliases in MATERIAL_ALIASES.items():
        for alias in aliases:
            pattern = rf"(?<![a-z0-9]){re.escape(alias)}(?![a-z0-9])"
            for match in re.finditer(pattern, lowered):
                if not _is_material_mention(lowered, match.start(), match.end()):
                    continue
                if material not in positions or match.start() < positions[material]:
                    positions[material] = match.start()
                break
    return sorted(positions, key=lambda material: positions[material])


def material_aliases(material: str) -> tuple[str, ...]:
    """Search words for a canonical material, including the name itself."""
    aliases = MATERIAL_ALIASES.get(material, ())
    return (material.lower(),) + tuple(alias for alias in aliases if alias != material.lower())


def material_profile(material: str) -> MaterialProfile | None:
    return MATERIAL_PROFILES.get(material)


def generic_material_profile(material: str) -> MaterialProfile:
    """Neutral profile for materials without a reference entry."""
    return MaterialProfile(
        sound=f"{material} shapes the switch's sound through its density and resonance.",
        feel=f"{material} affects typing feel through its stiffness and surface finish.",
        durability=f"Durability of {material} depends on its grade and manufacturing quality.",
        advantages=(f"Advantages of {material} vary with the switch design",),
        disadvantages=(f"Drawbacks of {material} vary with the switch design",),
    )


# =============================================================================
# Characteristics
# =============================================================================

CHARACTERISTIC_KEYWORDS = (
    "actuation force",
    "tactile",
    "linear",
    "clicky",
    "travel",
    "sound",
    "feel",
)

CHARACTERISTIC_TERMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("feel", ("tactility", "tactile", "feel", "smooth", "rough", "scratch")),
    ("sound", ("sound", "acoustic", "noise", "thock", "clack", "ping")),
    ("technical", ("actuation", "force", "travel", "pretravel", "pre-travel", "weight", "spring")),
    ("build_quality", ("durability", "build", "quality", "construction", "wobble", "tolerance")),
)

CHARACTERISTIC_HINTS: dict[str, str] = {
    "feel": "Changes how each keystroke feels under the finger.",
    "sound": "Changes how loud the switch is and the pitch of each keystroke.",
    "technical": "Changes how much effort and distance each keystroke takes.",
    "build_quality": "Affects consistency and how the switch ages over time.",
    "other": "Affects the overall typing experience.",
}


def categorize_characteristic(characteristic: str) -> str:
    """Category of a characteristic: feel, sound, technical, build_quality or other."""
    lowered = characteristic.lower()
    for category, terms in CHARACTERISTIC_TERMS:
        if any(term in lowered for term in terms):
            return category
    return "other"


# =============================================================================
# Query Types
# =============================================================================

QUERY_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("troubleshooting", ("problem", "issue", "not working", "broken", "fix", "repair", "troubleshoot")),
    ("recommendation", ("recommend", "suggest", "best", "which should", "what should", "advice")),
    ("educational", ("how to", "explain", "learn", "understand", "difference between", "why")),
)

PRODUCT_INFO_KEYWORDS = ("specifications", "specs", "details", "information about", "tell me about")

SUGGESTED_QUESTIONS: dict[str, tuple[str, ...]] = {
    "product_info": (
        "What are the technical specifications?",
        "How does this compare to similar switches?",
        "What are the pros and cons?",
    ),
    "recommendation": (
        "What are alternative options?",
        "What factors should I consider?",
        "What would work best for my use case?",
    ),
    "educational": (
        "Can you explain this in more detail?",
        "What are some examples?",
        "How does this work in practice?",
    ),
    "troubleshooting": (
        "What are common causes?",
        "How can I prevent this in the future?",
        "Are there alternative solutions?",
    ),
    "general_knowledge": (
        "Can you tell me more about this topic?",
        "What are related topics I should know about?",
    ),
}


def detect_query_type(text: str, mentions_product: bool = False) -> str:
    """Guess the kind of question an answer responds to."""
    lowered = text.lower()
    if any(keyword in lowered for keyword in PRODUCT_INFO_KEYWORDS):
        if mentions_product or "switch" in lowered or "keyboard" in lowered:
            return "product_info"
    for query_type, keywords in QUERY_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return query_type
    return "general_knowledge"


def suggested_questions(query_type: str) -> list[str]:
    return list(SUGGESTED_QUESTIONS.get(query_type, SUGGESTED_QUESTIONS["general_knowledge"]))
