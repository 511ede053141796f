import argparse
import logging
import os
import sys
from typing import List, Optional

if __name__ == "__main__" and not __package__:
    parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if parent_dir not in sys.path:
        sys.path.insert(0, parent_dir)
    import state_check
    __package__ = "state_check"

from .checker_lib.core import FAILED, MINOR, PASSED, CheckOutcome, CheckSummary, check_directories, check_files
from .checker_lib.exceptions import StateCheckError
from .checker_lib.options import DEFAULT_SKIP_KEYS, SKIP_KEYS_ENV, CheckOptions
from . import color_console as cc

from . import __version__

def _validate_args(args: argparse.Namespace, parser: argparse.ArgumentParser):
    """Performs validation checks on parsed command-line arguments."""
    if not os.path.exists(args.reference):
        parser.error(f"Reference path does not exist: {args.reference}")
    if not os.path.exists(args.candidate):
        parser.error(f"Candidate path does not exist: {args.candidate}")
    if os.path.isdir(args.reference) != os.path.isdir(args.candidate):
        parser.error("Reference and candidate must both be files or both be directories.")
    if args.dump_minor and not args.reports_dir:
        parser.error("--minor requires --reports-dir.")
    if args.significant_digits < 1:
        parser.error("--significant-digits must be positive.")
    if args.max_repeats < 0:
        parser.error("--max-repeats must not be negative.")

def _resolve_skip_keys(args: argparse.Namespace) -> List[str]:
    """Picks the skip keys from the command line, the environment, or the defaults."""
    if args.no_skip:
        return []
    if args.skip:
        return list(args.skip)
    from_env = os.environ.get(SKIP_KEYS_ENV)
    if from_env:
        return [key.strip() for key in from_env.split(",") if key.strip()]
    return list(DEFAULT_SKIP_KEYS)

def _configure_logging(args: argparse.Namespace) -> None:
    """Routes library diagnostics to stderr at a level matching the verbosity flags."""
    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")

def _build_check_options(args: argparse.Namespace) -> CheckOptions:
    """Assembles the CheckOptions object from the parsed arguments."""
    return CheckOptions(
        reference_path=args.reference,
        candidate_path=args.candidate,
        skip_keys=_resolve_skip_keys(args),
        fail_fast=args.fail_fast,
        significant_digits=args.significant_digits,
        max_repeats=args.max_repeats,
        reports_dir=args.reports_dir,
        dump_minor=args.dump_minor,
        recursive=args.recursive,
        verbose=args.verbose,
        quiet=args.quiet,
    )

def report_outcome(outcome: CheckOutcome, options: CheckOptions) -> None:
    """Prints the verdict for one state in the colour matching its status."""
    for warning in outcome.warnings:
        cc.print_warning(f"Warning ({outcome.name}): {warning}", quiet=options.quiet)

    if outcome.status == PASSED:
        cc.print_success(f"Testing {outcome.name} passed!", quiet=options.quiet)
        return
    if outcome.status == MINOR:
        cc.print_warning(
            f"Testing {outcome.name} found {outcome.minor} minor differences (likely numerical rounding)",
            quiet=options.quiet,
        )
    elif options.fail_fast:
        cc.print_error(f"Testing {outcome.name} failed - review!")
    else:
        details = f" (with {outcome.minor} minor numerical)" if outcome.minor else ""
        cc.print_error(f"Testing {outcome.name} found {outcome.issues} differences{details} - review!")
    if outcome.report_path:
        cc.print_info(f"Candidate written to '{outcome.report_path}'.", quiet=options.quiet)

def main_logic(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    """Orchestrates the check after argument parsing and returns the exit status."""
    _validate_args(args, parser)
    options = _build_check_options(args)

    if os.path.isdir(options.reference_path):
        cc.print_info(f"Checking states in '{options.candidate_path}' against '{options.reference_path}'...", quiet=options.quiet)
        summary = check_directories(options)
    else:
        summary = CheckSummary(outcomes=[check_files(options.reference_path, options.candidate_path, options)])

    for outcome in summary.outcomes:
        report_outcome(outcome, options)
    for reference in summary.missing:
        cc.print_error(f"No candidate found for reference '{reference}'.")

    cc.print_summary(summary.count(PASSED), summary.count(MINOR), summary.count(FAILED), quiet=options.quiet)
    return 0 if summary.ok else 1

def main(argv: Optional[List[str]] = None) -> None:
    """Defines and executes the command-line interface for the state checker."""
    parser = argparse.ArgumentParser(
        description="Compare saved simulation states against reference runs.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="Example usage:\n"
               "  # Compare a single state with its reference\n"
               "  state-check reference/run.plist output/run.plist\n\n"
               "  # Check a whole directory of states, keeping copies of failures\n"
               "  state-check references/ output/ --reports-dir reports/ --minor"
    )

    core_group = parser.add_argument_group('Core Arguments')
    core_group.add_argument("reference", help="Reference state file or directory.")
    core_group.add_argument("candidate", help="Candidate state file or directory.")
    core_group.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    dir_group = parser.add_argument_group('Directory Options')
    dir_group.add_argument('--recursive', dest='recursive', action='store_true', help="Search directories recursively (default).")
    dir_group.add_argument('--no-recursive', dest='recursive', action='store_false', help="Only check the top level of the directories.")
    parser.set_defaults(recursive=True)

    compare_group = parser.add_argument_group('Comparison')
    skip_group = compare_group.add_mutually_exclusive_group()
    skip_group.add_argument("--skip", action="append", metavar="KEY", help=f"Key to ignore; repeatable (env: {SKIP_KEYS_ENV}, default: {', '.join(DEFAULT_SKIP_KEYS)}).")
    skip_group.add_argument("--no-skip", action="store_true", help="Compare all keys.")
    compare_group.add_argument("--fail-fast", action="store_true", help="Stop each comparison at the first difference.")
    compare_group.add_argument("--significant-digits", type=int, default=12, help="Digits that must agree for a real difference to count as rounding (default: 12).")
    compare_group.add_argument("--max-repeats", type=int, default=3, help="Similar messages shown before suppressing the rest (default: 3).")

    report_group = parser.add_argument_group('Reports')
    report_group.add_argument("--reports-dir", help="Directory receiving copies of candidates that did not pass.")
    report_group.add_argument("--minor", dest="dump_minor", action="store_true", help="Also write candidates with only minor differences.")

    info_group = parser.add_argument_group('General')
    verbosity_group = info_group.add_mutually_exclusive_group()
    verbosity_group.add_argument("--verbose", action="store_true", help="Show every difference.")
    verbosity_group.add_argument("--quiet", "-q", action="store_true", help="Suppress all informational output.")

    args = parser.parse_args(argv)
    _configure_logging(args)

    try:
        status = main_logic(args, parser)
    except StateCheckError as e:
        cc.print_error(f"\n---FATAL ERROR---\n{e}\n-------------------\n")
        sys.exit(1)
    sys.exit(status)

if __name__ == "__main__":
    main()
