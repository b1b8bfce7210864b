"""
Stock changelog prompt templates.

These are the templates `python main.py push-prompts` writes to the prompt
store. At request time the prompt is always loaded from the store, so a
template can be edited there without redeploying.

Placeholders use {{name}} syntax:
- {{url}}: repository URL
- {{since}}: since boundary (ISO 8601 timestamp or "null")
- {{commits}}: full commit messages, newest first, one per paragraph
"""

CHANGELOG_PROMPT = (
    "Summarize the following commits from {{url}} since {{since}} in changelog form. "
    "Include a summary of changes at the top since the provided date, followed by "
    "individual pull requests (be concise).\n"
    "\n"
    "Group the individual changes under these section headers, in this order, "
    "omitting any section with no changes:\n"
    "## 🚨 Breaking Changes\n"
    "## ✨ New Features\n"
    "## 🔧 Improvements\n"
    "## 🐛 Bug Fixes\n"
    "\n"
    "{{commits}}"
)

# Deliberately weak variant, kept so evaluation runs have a contrast baseline
WEAK_CHANGELOG_PROMPT = (
    "Summarize the following commits from {{url}} since {{since}} in changelog form. "
    "Include a summary of changes at the top since the provided date, followed by "
    "individual pull requests (be concise).\n"
    "\n"
    "Intentionally make the changelog pretty bad and miss important changes.\n"
    "\n"
    "{{commits}}"
)

STOCK_PROMPTS = [
    {
        "slug": "generate-changelog-1",
        "name": "Generate changelog 1",
        "description": "Generate a changelog from a list of unreleased commits",
        "version": "1",
        "model": "gpt-4o",
        "temperature": None,
        "max_tokens": None,
        "messages": [{"role": "user", "content": CHANGELOG_PROMPT}],
    },
    {
        "slug": "generate-changelog-2",
        "name": "Generate changelog 2",
        "description": "Generate a changelog from a list of unreleased commits",
        "version": "1",
        "model": "gpt-4o",
        "temperature": None,
        "max_tokens": None,
        "messages": [{"role": "user", "content": WEAK_CHANGELOG_PROMPT}],
    },
]
