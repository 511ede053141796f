import argparse
import copy
import json
import math
import os
import statistics
import sys
import timeit
from typing import Any, Callable, Dict, List

from plist_state.differ import PlistDiffer
from plist_state.encoder import encode_document, fingerprint
from plist_state.parser import parse

# --- Default Configuration ---
DEFAULT_ITERATIONS = 100
DEFAULT_REPEAT = 5
DEFAULT_DATA_FILES = [
    "plist_state/tests/data/moran_state.plist",
]
OPERATIONS = ("parse", "encode", "fingerprint", "diff")

class Statistics:
    """Summary of the per-iteration timings of one operation.

    Attributes:
        mean_s: The mean time in seconds.
        median_s: The median time in seconds.
        stdev_s: The standard deviation in seconds.
        min_s: The minimum time in seconds.
        max_s: The maximum time in seconds.
    """
    def __init__(self, times_s: List[float]):
        self.mean_s = statistics.mean(times_s)
        self.median_s = statistics.median(times_s)
        self.stdev_s = statistics.stdev(times_s) if len(times_s) > 1 else 0.0
        self.min_s = min(times_s)
        self.max_s = max(times_s)

    def to_dict(self) -> Dict[str, float]:
        """Returns the statistics in milliseconds."""
        return {
            "mean_ms": self.mean_s * 1000,
            "median_ms": self.median_s * 1000,
            "stdev_ms": self.stdev_s * 1000,
            "min_ms": self.min_s * 1000,
            "max_ms": self.max_s * 1000,
        }

class BenchmarkResult:
    """Timings of every benchmarked operation for a single state file.

    Attributes:
        file_path: The path to the state file that was benchmarked.
        scale: How many copies of the state were combined into the document.
        stats: Maps operation names to their `Statistics`.
    """
    def __init__(self, file_path: str, scale: int):
        self.file_path = file_path
        self.scale = scale
        self.stats: Dict[str, Statistics] = {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": os.path.basename(self.file_path),
            "scale": self.scale,
            "operations": {name: stats.to_dict() for name, stats in self.stats.items()},
        }

class BenchmarkRunner:
    """Runs the parse, encode, fingerprint and diff benchmarks over state files.

    The diff benchmark compares each state with a deep copy in which every
    real has been nudged by one unit in the last place, which is the worst
    case: the whole tree is walked and every real is classified.

    Attributes:
        data_files: Paths to the state files to benchmark.
        iterations: The number of iterations per repetition.
        repeat: The number of repetitions.
        scale: Number of copies of each state combined into one document.
        results: One `BenchmarkResult` per file, populated by `run()`.
    """
    def __init__(self, data_files: List[str], iterations: int, repeat: int, scale: int = 1):
        self.data_files = data_files
        self.iterations = iterations
        self.repeat = repeat
        self.scale = scale
        self.results: List[BenchmarkResult] = []

    def _run_benchmark(self, func: Callable[[], Any]) -> Statistics:
        """Times `func` with `timeit` and returns per-iteration statistics."""
        timer = timeit.Timer(func)
        times = timer.repeat(repeat=self.repeat, number=self.iterations)
        return Statistics([t / self.iterations for t in times])

    def run(self):
        """Executes every operation for all data files."""
        differ = PlistDiffer()
        differ.quiet()
        for file_path in self.data_files:
            result = BenchmarkResult(file_path, self.scale)
            state = scale_state(parse(load_test_data(file_path)), self.scale)
            document = encode_document(state)
            nudged = nudge_reals(state)

            result.stats["parse"] = self._run_benchmark(lambda: parse(document))
            result.stats["encode"] = self._run_benchmark(lambda: encode_document(state))
            result.stats["fingerprint"] = self._run_benchmark(lambda: fingerprint(state))
            result.stats["diff"] = self._run_benchmark(lambda: differ.compare(state, nudged))

            self.results.append(result)

    def print_results_human_readable(self):
        """Prints the benchmark results in a human-readable table."""
        print("--- Plist State Benchmark ---")
        print(f"Iterations per repetition: {self.iterations}")
        print(f"Repetitions: {self.repeat}")
        print(f"Scale: {self.scale}")

        for result in self.results:
            print("\n" + "=" * 80)
            print(f"Benchmark for: {os.path.basename(result.file_path)}")
            print("=" * 80)
            print(f"  {'Operation':<12} {'Mean':>12} {'Median':>12} {'Stdev':>12} {'Min':>12} {'Max':>12}")
            for name in OPERATIONS:
                stats = result.stats[name].to_dict()
                print(f"  {name:<12} {stats['mean_ms']:>9.4f} ms {stats['median_ms']:>9.4f} ms "
                      f"{stats['stdev_ms']:>9.4f} ms {stats['min_ms']:>9.4f} ms {stats['max_ms']:>9.4f} ms")
            print("-" * 80)

        print("\n--- Benchmark Complete ---")

    def print_results_json(self):
        """Prints the benchmark results in JSON format."""
        output_data = {
            "configuration": {
                "iterations": self.iterations,
                "repetitions": self.repeat,
                "scale": self.scale,
                "data_files": self.data_files
            },
            "results": [res.to_dict() for res in self.results]
        }
        print(json.dumps(output_data, indent=2))


def scale_state(state: Dict[str, Any], scale: int) -> Dict[str, Any]:
    """Combines `scale` copies of a state under numbered keys."""
    if scale <= 1:
        return state
    return {f"Copy {i}": copy.deepcopy(state) for i in range(scale)}

def nudge_reals(value: Any) -> Any:
    """Returns a deep copy of `value` with every real increased by one ulp."""
    if isinstance(value, dict):
        return {key: nudge_reals(item) for key, item in value.items()}
    if isinstance(value, list):
        return [nudge_reals(item) for item in value]
    if isinstance(value, float):
        return math.nextafter(value, math.inf)
    return value

def load_test_data(file_path: str) -> str:
    """Loads content from a specified data file."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        print(f"Error: Data file not found at '{file_path}'.", file=sys.stderr)
        print("Please ensure the path is correct and the script is run from the repository's root directory.", file=sys.stderr)
        sys.exit(1)
    except IOError as e:
        print(f"Error reading file '{file_path}': {e}", file=sys.stderr)
        sys.exit(1)

def main():
    """Parses command-line arguments and runs the benchmarks."""
    parser = argparse.ArgumentParser(
        description="Run benchmarks for the plist state library.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        '--data-files',
        nargs='+',
        default=DEFAULT_DATA_FILES,
        help="Paths to the state files to use for benchmarking."
    )
    parser.add_argument(
        '--iterations',
        type=int,
        default=DEFAULT_ITERATIONS,
        help="Number of times to run the operation within each benchmark repetition."
    )
    parser.add_argument(
        '--repeat',
        type=int,
        default=DEFAULT_REPEAT,
        help="Number of times to repeat the benchmark."
    )
    parser.add_argument(
        '--scale',
        type=int,
        default=1,
        help="Number of copies of each state to combine, to benchmark larger documents."
    )
    parser.add_argument(
        '--output-json',
        action='store_true',
        help="Output the results in JSON format instead of a human-readable table."
    )
    args = parser.parse_args()

    runner = BenchmarkRunner(
        data_files=args.data_files,
        iterations=args.iterations,
        repeat=args.repeat,
        scale=args.scale
    )
    runner.run()

    if args.output_json:
        runner.print_results_json()
    else:
        runner.print_results_human_readable()

if __name__ == "__main__":
    main()
