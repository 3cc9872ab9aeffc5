"""FlacronBuild estimate pipeline - Cloud Functions.

This package contains the Python Cloud Functions that turn a roofing /
construction project form into a cost estimate using the Gemini API.

Architecture:
- Prompt builder: one template per user role plus a legacy key=value style
- Model client: Gemini generateContent over httpx
- Normalizer: fence stripping, range repair, legacy key=value parsing
- Aggregator: cost fallbacks, contingency, totals
- Orchestrator: chains the above and appends the estimate record
"""

__version__ = "1.0.0"
