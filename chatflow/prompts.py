"""
ChatFlow Prompt Templates

The system instruction sent to every backend.
"""

# =============================================================================
# System Instruction
# =============================================================================

SYSTEM_PROMPT = """You are ChatFlow, an AI assistant that helps users automate tasks across multiple services.

You are friendly, helpful, and concise. You help users with:
- Creating and managing Supabase projects
- Managing credentials and API keys
- Automating common workflows

For now, you're in a basic mode without tool access. Just have natural conversations and help users understand what you can do.

When users ask about capabilities, explain that you'll soon be able to:
- Create Supabase projects
- Manage API keys securely
- Query databases
- And more integrations coming soon!"""


def build_system_instruction(base: str, extra: list) -> str:
    """Append system-role history turns to the base instruction

    Used by backends that take the system instruction as a dedicated field
    instead of a transcript entry.
    """
    parts = [base] if base else []
    parts.extend(text for text in extra if text)
    return "\n\n".join(parts)
