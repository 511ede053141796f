import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from plist_state.differ import PlistDiffer
from plist_state.encoder import fingerprint

from .exceptions import StateCheckError
from .options import CheckOptions
from .state_files import collect_pairs, load_state, state_name, write_state

PASSED = "passed"
MINOR = "minor"
FAILED = "failed"


@dataclass
class CheckOutcome:
    """The result of checking one candidate state against its reference.

    Attributes:
        name: Display name of the state, usually the file's state name.
        status: One of 'passed', 'minor' or 'failed'.
        issues: Total number of differences found.
        minor: Number of differences that are likely numerical rounding.
        messages: Diagnostics emitted by the comparison.
        warnings: Parser warnings and checker remarks about the inputs.
        report_path: Where the candidate was dumped, if it was.
    """
    name: str
    status: str
    issues: int = 0
    minor: int = 0
    messages: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    report_path: Optional[str] = None

    @property
    def major(self) -> int:
        return self.issues - self.minor


@dataclass
class CheckSummary:
    outcomes: List[CheckOutcome] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def ok(self) -> bool:
        return self.count(FAILED) == 0 and not self.missing


def _build_differ(options: CheckOptions) -> PlistDiffer:
    differ = PlistDiffer(
        fail_fast=options.fail_fast,
        max_repeats=options.max_repeats,
        significant_digits=options.significant_digits,
    )
    if options.verbose:
        differ.verbose()
    elif options.quiet:
        differ.quiet()
    return differ


def compare_states(reference: Dict[str, Any], candidate: Dict[str, Any], options: CheckOptions, name: str = "state") -> CheckOutcome:
    """Compares a candidate state with its reference and classifies the result.

    Identical fingerprints (ignoring the skip keys) pass without a full
    comparison. Otherwise the trees are diffed: no differences means
    'passed', only numerical rounding differences means 'minor', anything
    else 'failed'. When real differences are found and the `CLO` option
    strings of both states disagree, a warning naming both is added, since
    differing options usually explain the failure.

    Args:
        reference: The parsed reference state.
        candidate: The parsed candidate state.
        options: The `CheckOptions` for this run.
        name: Display name used in the outcome.

    Returns:
        A `CheckOutcome` describing the comparison.
    """
    if fingerprint(reference, options.skip_keys) == fingerprint(candidate, options.skip_keys):
        return CheckOutcome(name=name, status=PASSED)

    result = _build_differ(options).compare(reference, candidate, options.skip_keys)
    outcome = CheckOutcome(
        name=name,
        status=PASSED,
        issues=result.count,
        minor=result.minor,
        messages=list(result.messages),
    )
    if result.count == 0:
        return outcome
    outcome.status = MINOR if result.major == 0 else FAILED

    if result.major > 0:
        ref_clo = reference.get("CLO")
        cand_clo = candidate.get("CLO")
        if ref_clo != cand_clo:
            outcome.warnings.append(f"CLO strings differ!\n me: {cand_clo}\nref: {ref_clo}")
    return outcome


def _dump_report(outcome: CheckOutcome, candidate: Dict[str, Any], options: CheckOptions) -> None:
    """Writes a copy of a candidate that did not pass into the reports directory."""
    if not options.reports_dir or outcome.status == PASSED:
        return
    if outcome.status == MINOR and not options.dump_minor:
        return
    path = os.path.join(options.reports_dir, f"{outcome.name}-{outcome.status}.plist")
    write_state(path, candidate)
    outcome.report_path = path


def check_files(reference_path: str, candidate_path: str, options: CheckOptions) -> CheckOutcome:
    """Loads two state files, compares them and dumps a report if configured.

    Raises:
        StateFileError: If either file cannot be read.
    """
    reference, reference_warnings = load_state(reference_path)
    candidate, candidate_warnings = load_state(candidate_path)
    outcome = compare_states(reference, candidate, options, name=state_name(reference_path))
    outcome.warnings = (
        [f"reference: {w}" for w in reference_warnings]
        + [f"candidate: {w}" for w in candidate_warnings]
        + outcome.warnings
    )
    _dump_report(outcome, candidate, options)
    return outcome


def check_directories(options: CheckOptions) -> CheckSummary:
    """Checks every reference state in a directory against its candidate.

    References and candidates are paired by relative path and state name
    (see `collect_pairs`). A pair whose files cannot be read counts as
    failed; the error is recorded as a warning on its outcome and the run
    continues with the next pair.

    Args:
        options: The `CheckOptions`; both paths must be directories.

    Returns:
        A `CheckSummary` with one outcome per pair and the references that
        had no candidate.
    """
    pairs, missing = collect_pairs(options.reference_path, options.candidate_path, options.recursive)
    summary = CheckSummary(missing=missing)

    with logging_redirect_tqdm(), tqdm(total=len(pairs), desc="Checking", unit="state", disable=options.quiet) as pbar:
        for reference_path, candidate_path in pairs:
            try:
                outcome = check_files(reference_path, candidate_path, options)
            except StateCheckError as e:
                outcome = CheckOutcome(name=state_name(reference_path), status=FAILED, warnings=[str(e)])
            summary.outcomes.append(outcome)
            pbar.update(1)
    return summary
