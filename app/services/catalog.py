"""
Catalog - Writing tools, text personas and the voice catalog.

NO DICTIONARIES - Catalog entries are frozen dataclasses.
"""

from dataclasses import dataclass

from app.models.api import ToolType


@dataclass(frozen=True)
class WritingTool:
    """Writing tool catalog entry."""

    tool_type: ToolType
    name: str
    category: str  # writing, audio, chat
    description: str
    persona: str | None  # None for tools that never call the text provider


@dataclass(frozen=True)
class Voice:
    """Voice catalog entry."""

    voice_id: str
    name: str
    language: str
    gender: str
    category: str  # standard, premium


GENERIC_PERSONA = "You are a specialist writing assistant. Help create high-quality content."

WRITING_TOOLS: tuple[WritingTool, ...] = (
    WritingTool(
        ToolType.REWRITE,
        "Rewrite",
        "writing",
        "Improve existing text with different tones and styles",
        "You are an expert at rewriting text. Improve the text while keeping its original "
        "meaning, with better clarity, flow and engagement.",
    ),
    WritingTool(
        ToolType.ARTICLE,
        "Articles",
        "writing",
        "Create complete SEO-optimized articles",
        "You are an expert writer of complete, SEO-optimized articles. Write well-structured "
        "articles with an introduction, body and conclusion. Include subheadings and be "
        "informative.",
    ),
    WritingTool(
        ToolType.EMAIL,
        "Emails",
        "writing",
        "Templates and quick replies for email",
        "You are an expert in business communication. Write professional, clear and "
        "persuasive emails with a tone appropriate to the context.",
    ),
    WritingTool(
        ToolType.SOCIAL,
        "Social Media",
        "writing",
        "Content optimized for multiple platforms",
        "You are an expert in social media content marketing. Write engaging posts with a "
        "call to action and relevant hashtags.",
    ),
    WritingTool(
        ToolType.PRODUCT,
        "Products",
        "writing",
        "Persuasive copy that turns visitors into customers",
        "You are a copywriter specialized in product descriptions. Write persuasive copy "
        "that highlights benefits and features and creates purchase urgency.",
    ),
    WritingTool(
        ToolType.CORRECTION,
        "Correction",
        "writing",
        "Advanced grammar checking with suggestions",
        "You are an expert proofreader. Fix grammar, spelling and style errors while "
        "keeping the original tone of the text.",
    ),
    WritingTool(
        ToolType.TTS,
        "Text-to-Speech",
        "audio",
        "Turn any text into professional audio",
        None,
    ),
    WritingTool(
        ToolType.AUDIOBOOK,
        "Audiobooks",
        "audio",
        "Turn long articles into audiobooks",
        None,
    ),
    WritingTool(
        ToolType.CHAT,
        "Chat",
        "chat",
        "Conversational writing assistant",
        None,
    ),
    WritingTool(
        ToolType.GENERAL,
        "General",
        "writing",
        "General writing assistance",
        None,
    ),
)

VOICES: tuple[Voice, ...] = (
    Voice("en-us-ana", "Ana", "English (US)", "female", "standard"),
    Voice("en-us-carlos", "Carlos", "English (US)", "male", "standard"),
    Voice("en-us-sarah", "Sarah", "English (US)", "female", "premium"),
    Voice("en-us-david", "David", "English (US)", "male", "premium"),
    Voice("es-es-maria", "María", "Español", "female", "standard"),
    Voice("fr-fr-pierre", "Pierre", "Français", "male", "standard"),
)

_TOOLS_BY_TYPE = {tool.tool_type: tool for tool in WRITING_TOOLS}


def get_tool(tool_type: ToolType | str) -> WritingTool:
    """Look up a tool; unknown tags resolve to the general tool."""
    return _TOOLS_BY_TYPE[ToolType(tool_type)]


def tool_display_name(tool_type: ToolType | str) -> str:
    """English display name for a tool tag."""
    return get_tool(tool_type).name


def persona_for(tool_type: ToolType | str, language: str) -> str:
    """System instruction sent to the text provider."""
    persona = get_tool(tool_type).persona or GENERIC_PERSONA
    return f"{persona} Respond in {language}."


def voices_by_language() -> list[tuple[str, list[Voice]]]:
    """Group voices by language, preserving catalog order."""
    groups: list[tuple[str, list[Voice]]] = []
    for voice in VOICES:
        for language, members in groups:
            if language == voice.language:
                members.append(voice)
                break
        else:
            groups.append((voice.language, [voice]))
    return groups
