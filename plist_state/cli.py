import argparse
import logging
import os
import sys

from .encoder import encode_document
from .parser import PlistParser
from .tags import TagReader

STATE_EXTENSION = ".plist"


def normalize_text(text: str):
    """Parses a plist document and returns its canonical encoding.

    Returns:
        A tuple `(encoded, warnings)` with the re-encoded document and the
        parser warnings raised while reading it.
    """
    parser = PlistParser(TagReader(text))
    plist = parser.parse()
    return encode_document(plist), parser.warnings


def process_directories(input_dir, output_dir, no_overwrite=False, quiet=False, dry_run=False):
    """Walks through an input directory and re-encodes `.plist` files.

    Every state file found below `input_dir` is parsed and written to the
    corresponding location in `output_dir` in canonical form: reals as bit
    patterns (legacy decimal reals are upgraded), text escaped, one element
    per line. Files the parser had to repair are still written; the number of
    warnings is reported.

    Args:
        input_dir (str): The path to the source directory.
        output_dir (str): The path to the destination directory.
        no_overwrite (bool, optional): If True, existing files in the output
            directory are left untouched. Defaults to False.
        quiet (bool, optional): If True, suppresses all informational messages.
            Defaults to False.
        dry_run (bool, optional): If True, simulates the process without
            writing any files. Defaults to False.
    """
    def log(message: str):
        """Prints a message to the console unless in quiet mode."""
        if not quiet:
            print(message)

    for root, dirs, files in os.walk(input_dir):
        relative_path = os.path.relpath(root, input_dir)
        output_root = os.path.join(output_dir, relative_path)
        if not os.path.exists(output_root):
            log(f"Creating directory '{output_root}'")
            if not dry_run:
                os.makedirs(output_root)

        for file in files:
            if not file.endswith(STATE_EXTENSION):
                continue
            input_path = os.path.join(root, file)
            output_path = os.path.join(output_root, file)

            if os.path.exists(output_path) and no_overwrite:
                log(f"Skipping existing file '{output_path}'")
                continue

            log(f"Normalizing '{input_path}' to '{output_path}'...")
            try:
                with open(input_path, 'r', encoding='utf-8') as f:
                    content = f.read()
                normalized, warnings = normalize_text(content)
                if warnings:
                    log(f"  {len(warnings)} problem(s) repaired while reading '{input_path}'")
                if not dry_run:
                    with open(output_path, 'w', encoding='utf-8') as f:
                        f.write(normalized)
            except (OSError, UnicodeDecodeError) as e:
                print(f"Error normalizing file {file}: {e}", file=sys.stderr)


def main():
    """Defines the command-line interface and executes the main logic.

    Sets up `argparse` to handle the input and output directories along with
    options controlling the behavior of the script (`--no-overwrite`,
    `--quiet`, `--dry-run`), configures logging for the parser warnings,
    validates the input directory and calls `process_directories`.
    """
    parser = argparse.ArgumentParser(description="Recursively re-encode plist state files in canonical form.")
    parser.add_argument("input_dir", help="The input directory.")
    parser.add_argument("output_dir", help="The output directory.")
    parser.add_argument("-n", "--no-overwrite", action="store_true", help="Do not overwrite existing files in the output directory.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress informational messages and parser warnings.")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be done without actually modifying files.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.ERROR if args.quiet else logging.WARNING,
                        format="%(levelname)s: %(message)s")

    if not os.path.isdir(args.input_dir):
        print(f"Error: Input directory not found at '{args.input_dir}'", file=sys.stderr)
        sys.exit(1)

    process_directories(args.input_dir, args.output_dir, args.no_overwrite, args.quiet, args.dry_run)
    if not args.quiet:
        print("\nProcessing complete.")

if __name__ == "__main__":
    main()
