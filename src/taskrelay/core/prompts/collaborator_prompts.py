"""
Collaborator Prompts

Prompts used by the language collaborators:
- SEGMENTER_SYSTEM_PROMPT: picks the portion of a combined instruction for one task
- build_segmenter_request: user message for the segmenter
- build_evaluation_prompt: TRUE/FALSE judgement of a condition against data
"""

import json

SEGMENTER_SYSTEM_PROMPT = """
You are a task parser. Given a complex message with multiple tasks connected by
"and also" or "and then", extract the specific portion that relates to a
particular capability at a specific position.

PARSING RULES:
1. Split the message by "and also" and "and then" connectors
2. Identify which portion corresponds to the requested task index
3. Return ONLY the specific task portion, not the entire message
4. Maintain the context and details for that specific task

TASK TYPES:
- calendar_create_event: Look for "add event", "create event", "schedule", etc.
- send_imessage: Look for "message", "text", "imessage", etc.
- gmail_send_email: Look for "email", "send email", etc.

EXAMPLES:
Message: "Add event 'Film A' at 6pm and also add event 'Film B' at 7pm and also message John about it"
Tasks: ['calendar_create_event', 'calendar_create_event', 'send_imessage']
- Task 0 (calendar_create_event): "Add event 'Film A' at 6pm"
- Task 1 (calendar_create_event): "Add event 'Film B' at 7pm"
- Task 2 (send_imessage): "message John about it"

Return ONLY the specific task portion for the requested task index.
""".strip()


def build_segmenter_request(full_text: str, task_list: list[str], target_index: int) -> str:
    capability = task_list[target_index] if 0 <= target_index < len(task_list) else "unknown"
    return (
        f'Message: "{full_text}"\n'
        f"All tasks: {json.dumps(task_list)}\n"
        f"Requested capability: {capability}\n"
        f"Task index: {target_index}\n\n"
        f"Extract the specific task portion that corresponds to task index "
        f"{target_index} ({capability})."
    )


_MUSIC_EVALUATION_PROMPT = """Based on this data, determine if music is currently playing:

Condition: "{condition}"
Data: {data}

Rules:
- If the data shows "playing" or mentions a specific track/artist, respond "TRUE"
- If the data shows "paused", "stopped", or "Toggled music playback" (which indicates it was toggled from stopped to playing), respond "FALSE"
- If uncertain, respond "FALSE"

Respond with only "TRUE" or "FALSE"."""

_EVALUATION_PROMPT = (
    'Based on this data, determine if the following condition is true or false: "{condition}"'
    '\n\nData: {data}\n\nRespond with only "TRUE" or "FALSE".'
)


def build_evaluation_prompt(condition_text: str, data: str) -> str:
    """Build the oracle prompt; music playback conditions get stricter rules."""
    lowered = condition_text.lower()
    template = (
        _MUSIC_EVALUATION_PROMPT
        if "music" in lowered and "playing" in lowered
        else _EVALUATION_PROMPT
    )
    return template.format(condition=condition_text, data=data)
