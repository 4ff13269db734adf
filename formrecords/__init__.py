"""formrecords: dynamic-schema form submissions.

formrecords lets an operator define forms whose field sets are only known at
runtime, and stores respondents' answers as self-describing records:
- Forms are named, ordered mappings of field id to {type, prompt, required}
- Submissions are validated against the form's current schema (required
  fields are enforced, answers are resolved to their prompts)
- Stored submissions keep (prompt, answer) copies, so later form edits never
  change historical records

Basic usage:
    >>> from formrecords.runtime import FormRecordsRuntime
    >>> from formrecords.storage import InMemoryStorage
    >>> runtime = FormRecordsRuntime(InMemoryStorage())
    >>> form = runtime.create_form("T", {"f1": {"type": "text", "prompt": "Name?", "required": True}})
    >>> sub = runtime.create_submission(form["data"]["id"], {"f1": "Jo"})
    >>> sub["data"]["answers"]
    [{'prompt': 'Name?', 'answer': 'Jo'}]
"""

__version__ = "0.1.0"
__author__ = "formrecords developers"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formrecords.runtime import FormRecordsRuntime, build_runtime

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormRecordsRuntime",
    "build_runtime",
]
