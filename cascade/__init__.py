"""
CASCADE - AI Photo Restoration Cascade

Components:
- gateway.py: Talks to Gemini for planning, prompt crafting and image edits
- orchestrator.py: Drives a restoration plan step by step
- report.py: Renders before/after reports and exports run images
- web/: Browser UI for uploading a photo and following the cascade
- cli.py: Runs a cascade from the terminal
"""

__version__ = '1.0.0'
