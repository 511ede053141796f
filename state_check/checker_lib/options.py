from dataclasses import dataclass, field
from typing import List, Optional

from plist_state.differ import DEFAULT_MAX_REPEATS, PRECISION_DIGITS

# Entries that legitimately change from one run to the next.
DEFAULT_SKIP_KEYS: List[str] = ["Export date", "Version", "JavaVersion", "CLO"]

SKIP_KEYS_ENV = "STATE_CHECK_SKIP_KEYS"


@dataclass
class CheckOptions:
    """A data class to hold all settings for a state check run.

    Attributes:
        reference_path: Path to the reference state file or directory.
        candidate_path: Path to the candidate state file or directory.
        skip_keys: Keys ignored by the comparison at every nesting level.
        fail_fast: If True, stop each comparison at the first difference.
        significant_digits: Precision used to classify real differences as
            numerical rounding noise.
        max_repeats: Number of similar consecutive diagnostics shown before
            the rest are suppressed.
        reports_dir: Optional directory receiving re-encoded copies of
            candidates that did not pass.
        dump_minor: If True, candidates with only numerical differences are
            written to `reports_dir` as well.
        recursive: If True, directories are searched recursively.
        verbose: If True, every diagnostic line is shown.
        quiet: If True, suppresses all non-essential output.
    """
    reference_path: str
    candidate_path: str
    skip_keys: List[str] = field(default_factory=lambda: list(DEFAULT_SKIP_KEYS))
    fail_fast: bool = False
    significant_digits: int = PRECISION_DIGITS
    max_repeats: int = DEFAULT_MAX_REPEATS
    reports_dir: Optional[str] = None
    dump_minor: bool = False
    recursive: bool = True
    verbose: bool = False
    quiet: bool = False
