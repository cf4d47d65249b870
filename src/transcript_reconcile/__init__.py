"""Transcript Reconcile - review machine corrections of human transcripts.

Two engines:
1. Diff and merge: character-level diff of an original and a corrected
   text, grouped into accept/reject choices and merged into final text
2. Smart dictionary: persistent correction rules reapplied to new text
"""

__version__ = "0.1.0"
