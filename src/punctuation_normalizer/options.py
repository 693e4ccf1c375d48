"""Options that control what survives punctuation removal."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class NormalizationOptions:
    """Switches for the normalizer. Instances are immutable and safe to share."""

    keep_apostrophes: bool = True   # contractions and possessives
    keep_hyphens: bool = False      # hyphen/underscore compounds
    keep_email_url: bool = True     # email addresses and URLs
    keep_numbers: bool = True       # decimal digits anywhere in the text
    keep_line_breaks: bool = True   # line structure instead of one long line
    custom_keep_list: str = ""      # characters that are never removed


DEFAULT_OPTIONS = NormalizationOptions()
