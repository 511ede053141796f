"""
Structural comparison of two plist trees.

The differ walks a reference tree and a candidate tree depth first and
records every discrepancy as an `Issue`: keys present on one side only,
values of different variants, lists of different length, and unequal
leaves. Reals are compared by bit pattern; when they differ, the difference
is additionally classified as numerical rounding noise if both values agree
to `significant_digits` significant digits (see `is_rounding_noise`). This
lets a caller tell a run that drifted in the last digit apart from one that
really diverged.

Diagnostics are written to the module logger and collected on the returned
`DiffResult`. Long runs of similar messages (typically the elements of one
large array) are cut after `max_repeats` lines and summarized by a single
"suppressed" line, while the issue count stays exact.

Nothing is raised for differences. `UnsupportedValueError` is raised only if
a tree contains values outside the supported variants.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple, Union

from .codec import double_to_bits
from .values import Kind, kind_of

logger = logging.getLogger(__name__)

PRECISION_DIGITS = 12
DEFAULT_MAX_REPEATS = 3

Path = Tuple[Union[str, int], ...]


class IssueKind(Enum):
    MISSING_IN_REFERENCE = "missing in reference"
    MISSING_IN_CANDIDATE = "missing in candidate"
    TYPE_MISMATCH = "type mismatch"
    SIZE_MISMATCH = "size mismatch"
    VALUE_MISMATCH = "value mismatch"


@dataclass(frozen=True)
class Issue:
    """A single recorded discrepancy.

    Attributes:
        kind: What went wrong.
        path: Keys and list indices leading from the root to the location.
        message: The diagnostic line describing the issue.
        variant: The variant of the values compared, where one applies.
        numerical: True if the issue is a real mismatch within rounding noise.
    """
    kind: IssueKind
    path: Path
    message: str
    variant: Optional[Kind] = None
    numerical: bool = False

    @property
    def category(self) -> Hashable:
        """Identity used to group consecutive similar diagnostics.

        List indices in the parent path are wildcarded, so the elements of an
        array of dicts or of nested arrays all fall into one category.
        """
        parent = tuple(None if isinstance(part, int) else part for part in self.path[:-1])
        return (self.kind, self.variant, parent)


@dataclass
class DiffResult:
    """Outcome of one comparison."""
    issues: List[Issue] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.issues)

    @property
    def numerical(self) -> int:
        return sum(1 for issue in self.issues if issue.numerical)

    @property
    def major(self) -> int:
        return self.count - self.numerical

    @property
    def minor(self) -> int:
        return self.numerical


def format_path(path: Path) -> str:
    """Renders a path as `key/subkey[3]`."""
    text = ""
    for part in path:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += ("/" if text else "") + part
    return text


def is_rounding_noise(reference: float, candidate: float, significant_digits: int = PRECISION_DIGITS) -> bool:
    """Checks whether two doubles differ only in the last significant digit.

    Both values are scaled so that `significant_digits` digits of the
    reference sit in front of the decimal point, and are judged equivalent if
    their floors are at most one apart. This is a heuristic: near powers of
    ten it can be slightly too strict or too lenient. Non-finite values are
    never rounding noise.
    """
    if not (math.isfinite(reference) and math.isfinite(candidate)):
        return False
    order = math.floor(math.log10(1.0 + abs(reference)))
    scale = 10.0 ** (significant_digits - order)
    scaled_reference = reference * scale
    scaled_candidate = candidate * scale
    if not (math.isfinite(scaled_reference) and math.isfinite(scaled_candidate)):
        return False
    return abs(math.floor(scaled_reference) - math.floor(scaled_candidate)) <= 1


class DiagnosticLog:
    """
    Collects diagnostic lines for one comparison and limits repetitions.

    Consecutive messages of the same category form a run. Only the first
    `max_repeats` messages of a run are emitted; when the run ends, a single
    line tells how many more were suppressed. `max_repeats=None` emits
    everything, `max_repeats=0` emits nothing.
    """
    def __init__(self, max_repeats: Optional[int] = DEFAULT_MAX_REPEATS):
        self.max_repeats = max_repeats
        self.messages: List[str] = []
        self._category: Optional[Hashable] = None
        self._repeats = 0

    def report(self, message: str, category: Optional[Hashable] = None) -> None:
        if category is not None and category == self._category:
            self._repeats += 1
            if self.max_repeats is not None and self._repeats > self.max_repeats:
                return
        else:
            self.close()
            self._category = category
            self._repeats = 1
        self._emit(message)

    def close(self) -> None:
        """Ends the current run, emitting the suppression summary if needed."""
        if self.max_repeats is not None and self._repeats > self.max_repeats:
            suppressed = self._repeats - self.max_repeats
            self._emit(f"... suppressed {suppressed} additional similar message{'s' if suppressed > 1 else ''}.")
        self._category = None
        self._repeats = 0

    def _emit(self, message: str) -> None:
        if self.max_repeats == 0:
            return
        logger.warning(message)
        self.messages.append(message)


class _Walk:
    """State of a single comparison: found issues, diagnostics and the stop flag."""

    def __init__(self, differ: "PlistDiffer", skip_keys: Iterable[str]):
        self.skip = frozenset(skip_keys)
        self.owner = differ.owner
        self.fail_fast = differ.fail_fast
        self.digits = differ.significant_digits
        self.log = DiagnosticLog(differ.max_repeats)
        self.issues: List[Issue] = []
        self.stopped = False

    def record(self, kind: IssueKind, path: Path, message: str,
               variant: Optional[Kind] = None, numerical: bool = False) -> None:
        issue = Issue(kind, path, message, variant, numerical)
        self.issues.append(issue)
        self.log.report(message, issue.category)
        if self.fail_fast:
            self.stopped = True

    def diff_dict(self, reference: Dict[str, Any], candidate: Dict[str, Any], path: Path) -> None:
        for key in candidate:
            if key in self.skip or key in reference:
                continue
            self.record(IssueKind.MISSING_IN_REFERENCE, path + (key,),
                        f"key '{format_path(path + (key,))}' missing in reference.")
            if self.stopped:
                return
        for key, ref_value in reference.items():
            if key in self.skip:
                continue
            if key not in candidate:
                if not path and reference is self.owner:
                    continue
                self.record(IssueKind.MISSING_IN_CANDIDATE, path + (key,),
                            f"key '{format_path(path + (key,))}' missing in candidate.")
            else:
                self.diff_values(ref_value, candidate[key], path + (key,))
            if self.stopped:
                return

    def diff_list(self, reference: List[Any], candidate: List[Any], path: Path) -> None:
        if len(reference) != len(candidate):
            self.record(IssueKind.SIZE_MISMATCH, path,
                        f"'{format_path(path)}' arrays differ in size "
                        f"(candidate: {len(candidate)}, reference: {len(reference)}).",
                        Kind.LIST)
            return
        for index, (ref_item, cand_item) in enumerate(zip(reference, candidate)):
            self.diff_values(ref_item, cand_item, path + (index,))
            if self.stopped:
                return

    def diff_values(self, reference: Any, candidate: Any, path: Path) -> None:
        ref_kind = kind_of(reference)
        cand_kind = kind_of(candidate)
        where = format_path(path)
        if ref_kind is not cand_kind:
            self.record(IssueKind.TYPE_MISMATCH, path,
                        f"'{where}' value types differ "
                        f"(candidate: {cand_kind.value}, reference: {ref_kind.value}).")
            return
        if ref_kind is Kind.DICT:
            before = len(self.issues)
            self.diff_dict(reference, candidate, path)
            # no summary for list elements
            if len(self.issues) > before and not (path and isinstance(path[-1], int)):
                self.log.report(f"'{where}' dicts differ.")
            return
        if ref_kind is Kind.LIST:
            self.diff_list(reference, candidate, path)
            return
        if ref_kind is Kind.REAL:
            if double_to_bits(reference) == double_to_bits(candidate):
                return
            numerical = is_rounding_noise(reference, candidate, self.digits)
            self.record(IssueKind.VALUE_MISMATCH, path,
                        f"'{where}' reals differ (candidate: {candidate!r}, reference: {reference!r}, "
                        f"delta: {candidate - reference!r}).",
                        Kind.REAL, numerical)
            return
        if reference == candidate:
            return
        self.record(IssueKind.VALUE_MISMATCH, path,
                    f"'{where}' {ref_kind.value}s differ (candidate: {candidate!r}, reference: {reference!r}).",
                    ref_kind)

    def finish(self) -> DiffResult:
        self.log.close()
        result = DiffResult(issues=self.issues)
        if result.numerical > 0:
            self.log.report(f"{result.numerical} out of {result.count} differences "
                            "likely numerical rounding issues.")
            self.log.close()
        result.messages = self.log.messages
        return result


class PlistDiffer:
    """
    Compares plist trees and reports their differences.

    The differ only holds configuration; every call to `compare()` or
    `diff()` starts from fresh counters and a fresh diagnostic log, so one
    instance can be reused freely.

    Attributes:
        fail_fast: Stop at the first issue instead of enumerating all of them.
        max_repeats: How many similar consecutive messages to emit before
            suppressing the rest (None for no limit, 0 for silence).
        significant_digits: Precision used to classify rounding noise.
        owner: The dictionary the differ belongs to, if any. When the
            reference passed to `compare()` is this very object, top-level
            keys that only the reference has are tolerated; this supports
            checking a live state against a saved subset of its keys.
    """
    def __init__(self, fail_fast: bool = False, max_repeats: Optional[int] = DEFAULT_MAX_REPEATS,
                 significant_digits: int = PRECISION_DIGITS, owner: Optional[Dict[str, Any]] = None):
        self.fail_fast = fail_fast
        self.max_repeats = max_repeats
        self.significant_digits = significant_digits
        self.owner = owner

    def verbose(self) -> None:
        """Emits every diagnostic line."""
        self.max_repeats = None

    def quiet(self) -> None:
        """Suppresses all diagnostic lines; counts are unaffected."""
        self.max_repeats = 0

    def compare(self, reference: Dict[str, Any], candidate: Dict[str, Any],
                skip_keys: Iterable[str] = ()) -> DiffResult:
        """Compares two root dictionaries.

        Args:
            reference: The tree considered correct, e.g. a saved reference run.
            candidate: The tree under test.
            skip_keys: Keys ignored at every nesting level.

        Returns:
            A `DiffResult` with the issues found and the emitted diagnostics.

        Raises:
            UnsupportedValueError: If either tree holds unsupported values.
        """
        walk = _Walk(self, skip_keys)
        walk.diff_dict(reference, candidate, ())
        return walk.finish()

    def diff(self, reference: Dict[str, Any], candidate: Dict[str, Any],
             skip_keys: Iterable[str] = ()) -> int:
        """Same as `compare()`, returning only the number of issues."""
        return self.compare(reference, candidate, skip_keys).count


def diff(reference: Dict[str, Any], candidate: Dict[str, Any],
         skip: Iterable[str] = (), fail_fast: bool = False) -> int:
    """Returns the number of differences between two plist trees."""
    return PlistDiffer(fail_fast=fail_fast).diff(reference, candidate, skip)
